"""Pick the view that can represent a query without losing information.

The classifier runs an ordered list of rules over a :class:`ClassificationContext`;
the first rule whose predicate holds builds the view. Each view also has a
state builder that answers "what would this view show for the query", used
to populate every view when a URL is decoded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property

from corpus_query.corpus import CorpusInfo, ValueKind
from corpus_query.exceptions import UnsupportedConstructError
from corpus_query.filters import FilterSet
from corpus_query.pattern import Attribute, BinaryOp, TokenPattern, try_parse_pattern
from corpus_query.pattern.values import WILDCARD_WORDS, AnnotationValue, decode_annotation_value
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.views import (
    DOCS,
    HIT_GROUP_PREFIX,
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GroupSpec,
    NgramToken,
    NgramView,
    SimpleView,
    ViewState,
)

log = logging.getLogger(__name__)

MATCH_ALL = "[]"

_WORD_KINDS = (ValueKind.TEXT, ValueKind.COMBOBOX)


def decode_annotation_values(
    pattern: TokenPattern, corpus: CorpusInfo, primary: str | None = None
) -> dict[str, AnnotationValue]:
    """Reconstruct per-annotation edit values from a parsed pattern.

    Every token must be plain and contain only ``=`` attributes joined by
    AND. The i-th token's attribute becomes the i-th word of that
    annotation's value; positions an annotation does not constrain become
    ``*`` words, and trailing ``[]`` tokens are carried by the primary (or
    first word-splitting) annotation. Attributes on unknown annotations are
    dropped.

    Raises:
        UnsupportedConstructError: If the pattern cannot be shown as values.
    """
    regexes: dict[str, list[str | None]] = {}
    for i, token in enumerate(pattern.tokens):
        if not token.is_plain:
            raise UnsupportedConstructError("token has tags, repetition or is optional")

        stack = [token.expression] if token.expression is not None else []
        while stack:
            expression = stack.pop()
            if isinstance(expression, BinaryOp):
                if expression.operator != "&":
                    raise UnsupportedConstructError("alternatives cannot be shown as values")
                stack.append(expression.right)
                stack.append(expression.left)
            elif isinstance(expression, Attribute):
                if not corpus.known_annotation(expression.name):
                    log.debug("Dropping value for unknown annotation %s", expression.name)
                    continue
                if expression.operator != "=":
                    raise UnsupportedConstructError(
                        f"operator {expression.operator} on {expression.name}"
                    )
                values = regexes.setdefault(expression.name, [])
                if len(values) > i:
                    raise UnsupportedConstructError(
                        f"{expression.name} constrained twice in one token"
                    )
                values.extend([None] * (i - len(values)))
                values.append(expression.value)
            else:
                raise UnsupportedConstructError("negation cannot be shown as values")

    length = len(pattern.tokens)
    if not regexes and length:
        regexes[_match_all_carrier(corpus, primary)] = []
    if regexes and all(len(values) < length for values in regexes.values()):
        carriers = [a for a in regexes if corpus.value_kind(a) in _WORD_KINDS]
        if not carriers:
            raise UnsupportedConstructError("trailing [] tokens need a word-splitting annotation")
        carrier = primary if primary in carriers else carriers[0]
        regexes[carrier].extend([None] * (length - len(regexes[carrier])))

    decoded: dict[str, AnnotationValue] = {}
    for annotation_id, values in regexes.items():
        try:
            decoded[annotation_id] = decode_annotation_value(
                annotation_id, values, corpus.value_kind(annotation_id)
            )
        except ValueError as e:
            raise UnsupportedConstructError(str(e)) from e
    return decoded


def _match_all_carrier(corpus: CorpusInfo, primary: str | None) -> str:
    """Annotation whose words stand for a pattern of nothing but ``[]`` tokens."""
    candidate = primary or corpus.primary_annotation
    if corpus.value_kind(candidate) in _WORD_KINDS:
        return candidate
    for annotation in corpus.visible_annotations():
        if annotation.ui_kind in _WORD_KINDS:
            return annotation.id
    raise UnsupportedConstructError("[] tokens need a word-splitting annotation")


@dataclass
class ClassificationContext:
    """Everything known about a query when choosing its view.

    Derived data (the parsed pattern and decoded values) is computed lazily
    and at most once.
    """

    pattern: str | None = None
    filters: FilterSet = field(default_factory=dict)
    groups: GroupSpec = field(default_factory=GroupSpec)
    gap: str | None = None
    viewed_results: str | None = None
    group_display_mode: str | None = None
    settings: InterfaceSettings = field(default_factory=InterfaceSettings)

    @cached_property
    def parsed(self) -> TokenPattern | None:
        return try_parse_pattern(self.pattern, self.settings.primary)

    @cached_property
    def annotation_values(self) -> dict[str, AnnotationValue] | None:
        """Decoded values, or None when the pattern is not representable."""
        if self.parsed is None:
            return None
        try:
            return decode_annotation_values(
                self.parsed, self.settings.corpus, self.settings.primary
            )
        except UnsupportedConstructError as e:
            log.debug("Pattern cannot be shown as annotation values: %s", e.reason)
            return None

    @property
    def has_filters(self) -> bool:
        return any(f.is_active for f in self.filters.values())

    def group_annotation(self) -> str | None:
        """Annotation of the first group key when it is ``hit:<known annotation>``."""
        group_by = self.groups.group_by
        if not group_by or not group_by[0].startswith(HIT_GROUP_PREFIX):
            return None
        annotation_id = group_by[0][len(HIT_GROUP_PREFIX) :]
        return annotation_id if self.settings.corpus.known_annotation(annotation_id) else None


# ---------------------------------------------------------------------------
# Per-view state builders: the view's content for the query, or None
# ---------------------------------------------------------------------------


def simple_state(ctx: ClassificationContext) -> SimpleView | None:
    values = ctx.annotation_values
    if ctx.parsed is None or ctx.parsed.within or values is None or len(values) != 1:
        return None
    value = values.get(ctx.settings.primary)
    return SimpleView(value=value) if value is not None else None


def extended_state(ctx: ClassificationContext) -> ExtendedView | None:
    values = ctx.annotation_values
    if not values:
        return None
    allowed = set(ctx.settings.extended_ids)
    if any(annotation_id not in allowed for annotation_id in values):
        return None
    return ExtendedView(annotation_values=dict(values), within=ctx.parsed.within)


def advanced_state(ctx: ClassificationContext) -> AdvancedView | None:
    if ctx.parsed is None or not ctx.settings.advanced_enabled:
        return None
    return AdvancedView(pattern=ctx.pattern)


def expert_state(ctx: ClassificationContext) -> ExpertView | None:
    return ExpertView(pattern=ctx.pattern) if ctx.pattern else None


def frequency_state(ctx: ClassificationContext) -> FrequencyView | None:
    if ctx.pattern != MATCH_ALL or len(ctx.groups.keys) != 1:
        return None
    annotation_id = ctx.group_annotation()
    return FrequencyView(annotation_id=annotation_id) if annotation_id else None


def ngram_state(ctx: ClassificationContext) -> NgramView | None:
    if ctx.groups.context_keys:
        return None
    group_annotation = ctx.group_annotation()
    parsed = ctx.parsed
    if group_annotation is None or parsed is None or parsed.within:
        return None
    max_size = ctx.settings.ngram_max_size
    if len(parsed.tokens) > max_size:
        return None

    corpus = ctx.settings.corpus
    slots: list[NgramToken] = []
    for token in parsed.tokens:
        expression = token.expression
        if not token.is_plain:
            return None
        if expression is None:
            slots.append(NgramToken(id=group_annotation))
            continue
        if not isinstance(expression, Attribute) or expression.operator != "=":
            return None
        decoded = decode_annotation_value(
            expression.name, [expression.value], corpus.value_kind(expression.name)
        )
        slots.append(
            NgramToken(
                id=expression.name, value=decoded.value, case_sensitive=decoded.case_sensitive
            )
        )

    return NgramView(
        group_annotation_id=group_annotation,
        size=len(slots),
        max_size=max_size,
        tokens=tuple(slots),
    )


def corpora_state(ctx: ClassificationContext) -> CorporaView | None:
    if ctx.viewed_results != DOCS or ctx.pattern or ctx.groups.context_keys:
        return None
    group_by = ctx.groups.group_by
    return CorporaView(
        group_by=group_by[0] if group_by else None, group_display_mode=ctx.group_display_mode
    )


# ---------------------------------------------------------------------------
# Ordered rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """A named predicate and the view it builds."""

    name: str
    applies: Callable[[ClassificationContext], bool]
    build: Callable[[ClassificationContext], ViewState]


def _simple_fits(ctx: ClassificationContext) -> bool:
    state = simple_state(ctx)
    return (
        state is not None
        and not state.value.case_sensitive
        and any(word not in WILDCARD_WORDS for word in state.value.value.split())
        and not ctx.has_filters
        and not ctx.gap
    )


def _empty_view(ctx: ClassificationContext) -> ViewState:
    if ctx.has_filters:
        return ExpertView() if ctx.gap else ExtendedView()
    return SimpleView(value=AnnotationValue(id=ctx.settings.primary))


RULES: tuple[Rule, ...] = (
    Rule("frequency", lambda ctx: frequency_state(ctx) is not None, frequency_state),
    Rule(
        "ngram",
        lambda ctx: not _simple_fits(ctx) and ngram_state(ctx) is not None,
        ngram_state,
    ),
    Rule(
        "corpora",
        lambda ctx: bool(ctx.groups.group_by) and corpora_state(ctx) is not None,
        corpora_state,
    ),
    Rule("simple", _simple_fits, simple_state),
    Rule(
        "extended",
        lambda ctx: not ctx.gap and extended_state(ctx) is not None,
        extended_state,
    ),
    Rule(
        "advanced",
        lambda ctx: not ctx.gap and advanced_state(ctx) is not None,
        advanced_state,
    ),
    Rule("expert", lambda ctx: expert_state(ctx) is not None, expert_state),
    Rule("empty", lambda ctx: True, _empty_view),
)


def classify(ctx: ClassificationContext) -> ViewState:
    """Return the least expressive view that represents the query exactly."""
    for rule in RULES:
        if rule.applies(ctx):
            log.debug("Query classified as %s", rule.name)
            return rule.build(ctx)
    raise AssertionError("the empty rule always applies")
