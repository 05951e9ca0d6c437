"""Compile a view into the pattern, context and grouping it stands for."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from corpus_query.corpus import ValueKind
from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.pattern import (
    Attribute,
    Token,
    TokenPattern,
    annotations_to_pattern,
    pattern_to_string,
)
from corpus_query.pattern.values import AnnotationValue, encode_slot_value
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.views import (
    DOCS,
    HIT_GROUP_PREFIX,
    HITS,
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
    ViewState,
)

log = logging.getLogger(__name__)

BATCH_SEPARATOR = "|"


@dataclass(frozen=True)
class CompiledPattern:
    """What a view asks the backend for.

    Attributes:
        pattern: Token pattern text, or None when the view has none.
        within: Enclosing context already contained in ``pattern``.
        group_by: Grouping implied by an explore view.
        viewed_results: Result view an explore view always opens.
    """

    pattern: str | None = None
    within: str | None = None
    group_by: tuple[str, ...] = ()
    viewed_results: str | None = None


def _compile_simple(view: SimpleView, settings: InterfaceSettings) -> CompiledPattern:
    return CompiledPattern(pattern=annotations_to_pattern([view.value], None, settings.primary))


def _compile_extended(view: ExtendedView, settings: InterfaceSettings) -> CompiledPattern:
    pattern = annotations_to_pattern(view.active_values(), view.within, settings.primary)
    return CompiledPattern(pattern=pattern, within=view.within if pattern else None)


def _compile_text(view: AdvancedView | ExpertView, settings: InterfaceSettings) -> CompiledPattern:
    return CompiledPattern(pattern=view.pattern or None)


def _compile_frequency(view: FrequencyView, settings: InterfaceSettings) -> CompiledPattern:
    return CompiledPattern(
        pattern="[]",
        group_by=(HIT_GROUP_PREFIX + view.annotation_id,),
        viewed_results=HITS,
    )


def _compile_ngram(view: NgramView, settings: InterfaceSettings) -> CompiledPattern:
    corpus = settings.corpus
    tokens: list[Token] = []
    for slot in view.tokens[: view.size]:
        regex = encode_slot_value(
            AnnotationValue(
                id=slot.id,
                value=slot.value,
                case_sensitive=slot.case_sensitive,
                kind=corpus.value_kind(slot.id),
            )
        )
        expression = None if regex is None else Attribute(name=slot.id, operator="=", value=regex)
        tokens.append(Token(expression=expression))
    # Slots beyond the configured tokens are unconstrained
    tokens.extend(Token() for _ in range(view.size - len(tokens)))
    return CompiledPattern(
        pattern=pattern_to_string(TokenPattern(tokens=tokens)) or None,
        group_by=(HIT_GROUP_PREFIX + view.group_annotation_id,),
        viewed_results=HITS,
    )


def _compile_corpora(view: CorporaView, settings: InterfaceSettings) -> CompiledPattern:
    return CompiledPattern(
        group_by=(view.group_by,) if view.group_by else (),
        viewed_results=DOCS,
    )


_COMPILERS = {
    SimpleView: _compile_simple,
    ExtendedView: _compile_extended,
    AdvancedView: _compile_text,
    ExpertView: _compile_text,
    FrequencyView: _compile_frequency,
    NgramView: _compile_ngram,
    CorporaView: _compile_corpora,
}


def compile_view(view: ViewState, settings: InterfaceSettings) -> CompiledPattern:
    """Compile any view into its pattern and implied grouping."""
    return _COMPILERS[type(view)](view, settings)


def split_batch(view: ViewState, settings: InterfaceSettings) -> list[ExtendedView]:
    """Split an extended view into one query per value alternative.

    Every active value of a non-``pos`` annotation is split on ``|``; each
    alternative becomes a single-annotation extended view.

    Raises:
        SnapshotConfigurationError: If the view is not an extended view with
            batch splitting enabled.
    """
    if not isinstance(view, ExtendedView) or not view.split_batch:
        raise SnapshotConfigurationError(
            "split_batch", "only an extended view with batch splitting can be split"
        )

    views: list[ExtendedView] = []
    for value in view.active_values():
        if value.kind is ValueKind.POS:
            log.debug("Not splitting values of part-of-speech annotation %s", value.id)
            continue
        for alternative in value.value.split(BATCH_SEPARATOR):
            alternative = alternative.strip()
            if not alternative:
                continue
            views.append(
                ExtendedView(
                    annotation_values={value.id: replace(value, value=alternative)},
                    within=view.within,
                )
            )
    return views


def prepare_submission(snapshot: SearchSnapshot, settings: InterfaceSettings) -> SearchSnapshot:
    """Settle the result view and grouping a submitted snapshot searches with.

    Explore views force their own result view and grouping. Search views
    open hits when there is a pattern and docs otherwise.
    """
    if snapshot.view is None:
        return snapshot

    compiled = compile_view(snapshot.view, settings)
    if compiled.viewed_results is not None:
        results = ResultSettings(
            group_by=compiled.group_by,
            group_display_mode=(
                snapshot.view.group_display_mode if isinstance(snapshot.view, CorporaView) else None
            ),
        )
        return replace(snapshot, viewed_results=compiled.viewed_results, results=results)

    viewed = snapshot.viewed_results
    if viewed is None or (viewed == HITS and not compiled.pattern):
        viewed = HITS if compiled.pattern else DOCS
    if viewed != snapshot.viewed_results:
        return replace(snapshot, viewed_results=viewed, results=ResultSettings())
    return replace(snapshot, results=replace(snapshot.results, page=0, view_group=None))
