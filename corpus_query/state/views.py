"""View states, result settings and the immutable search snapshot.

A view is one editing surface for the query. Search-form views hold a token
pattern in progressively more expressive shapes (simple < extended <
advanced < expert); explore-form views are shortcuts that compile to a
pattern plus a grouping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from corpus_query.filters import FilterSet
from corpus_query.pattern import AnnotationValue

FORM_SEARCH = "search"
FORM_EXPLORE = "explore"

HITS = "hits"
DOCS = "docs"
RESULT_VIEWS: tuple[str, ...] = (HITS, DOCS)

PATTERN_MODES: tuple[str, ...] = ("simple", "extended", "advanced", "expert")
EXPLORE_MODES: tuple[str, ...] = ("frequency", "ngram", "corpora")

PAGE_SIZES: tuple[int, ...] = (20, 50, 100, 200)
DEFAULT_PAGE_SIZE = 50

SAMPLE_PERCENTAGE = "percentage"
SAMPLE_COUNT = "count"

CONTEXT_GROUP_PREFIX = "context:"
HIT_GROUP_PREFIX = "hit:"


@dataclass(frozen=True)
class SimpleView:
    """One free-text box searching the primary annotation."""

    form: ClassVar[str] = FORM_SEARCH
    mode: ClassVar[str] = "simple"

    value: AnnotationValue


@dataclass(frozen=True)
class ExtendedView:
    """One box per annotation, optionally inside an enclosing context."""

    form: ClassVar[str] = FORM_SEARCH
    mode: ClassVar[str] = "extended"

    annotation_values: dict[str, AnnotationValue] = field(default_factory=dict)
    within: str | None = None
    split_batch: bool = False

    def active_values(self) -> list[AnnotationValue]:
        return [v for v in self.annotation_values.values() if v.is_active]


@dataclass(frozen=True)
class AdvancedView:
    """Pattern text edited through the graphical query builder."""

    form: ClassVar[str] = FORM_SEARCH
    mode: ClassVar[str] = "advanced"

    pattern: str | None = None


@dataclass(frozen=True)
class ExpertView:
    """Raw pattern text."""

    form: ClassVar[str] = FORM_SEARCH
    mode: ClassVar[str] = "expert"

    pattern: str | None = None


@dataclass(frozen=True)
class FrequencyView:
    """Frequency list of one annotation over all tokens."""

    form: ClassVar[str] = FORM_EXPLORE
    mode: ClassVar[str] = "frequency"

    annotation_id: str


@dataclass(frozen=True)
class NgramToken:
    """One slot of an n-gram; an empty value matches any token."""

    id: str
    value: str = ""
    case_sensitive: bool = False


@dataclass(frozen=True)
class NgramView:
    """N-grams of ``size`` tokens grouped by one annotation."""

    form: ClassVar[str] = FORM_EXPLORE
    mode: ClassVar[str] = "ngram"

    group_annotation_id: str
    size: int = 3
    max_size: int = 5
    tokens: tuple[NgramToken, ...] = ()


@dataclass(frozen=True)
class CorporaView:
    """Document counts grouped by one metadata field."""

    form: ClassVar[str] = FORM_EXPLORE
    mode: ClassVar[str] = "corpora"

    group_by: str | None = None
    group_display_mode: str | None = None


ViewState = (
    SimpleView | ExtendedView | AdvancedView | ExpertView | FrequencyView | NgramView | CorporaView
)


@dataclass(frozen=True)
class GroupSpec:
    """Ordered group keys as sent to the backend.

    Keys look like ``field``, ``hit:<annotation>`` or ``context:<...>``; the
    non-context keys may end in ``:s`` (case-sensitive) or ``:i``.
    """

    keys: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str | None) -> GroupSpec:
        if not text:
            return cls()
        return cls(tuple(k.strip() for k in text.split(",") if k.strip()))

    @property
    def context_keys(self) -> tuple[str, ...]:
        return tuple(k for k in self.keys if k.startswith(CONTEXT_GROUP_PREFIX))

    @property
    def plain_keys(self) -> tuple[str, ...]:
        return tuple(k for k in self.keys if not k.startswith(CONTEXT_GROUP_PREFIX))

    @property
    def group_by(self) -> tuple[str, ...]:
        """Non-context keys without their case suffix."""
        return tuple(_strip_case_suffix(k) for k in self.plain_keys)

    @property
    def case_sensitive(self) -> bool:
        plain = self.plain_keys
        return bool(plain) and all(k.endswith(":s") for k in plain)

    @classmethod
    def from_settings(cls, results: ResultSettings) -> GroupSpec:
        suffix = ":s" if results.case_sensitive else ":i"
        keys = [key + suffix for key in results.group_by]
        keys.extend(results.group_by_advanced)
        return cls(tuple(keys))

    def to_param(self) -> str | None:
        return ",".join(self.keys) or None


def _strip_case_suffix(key: str) -> str:
    if key.endswith((":s", ":i")):
        return key[:-2]
    return key


@dataclass(frozen=True)
class ResultSettings:
    """Grouping, sorting and paging of one result view (hits or docs)."""

    group_by: tuple[str, ...] = ()
    group_by_advanced: tuple[str, ...] = ()
    case_sensitive: bool = False
    sort: str | None = None
    view_group: str | None = None
    page: int = 0
    group_display_mode: str | None = None

    @property
    def is_grouped(self) -> bool:
        return bool(self.group_by or self.group_by_advanced)


@dataclass(frozen=True)
class GlobalSettings:
    """Settings shared by both result views."""

    page_size: int = DEFAULT_PAGE_SIZE
    sample_mode: str = SAMPLE_PERCENTAGE
    sample_size: float | None = None
    sample_seed: int | None = None
    words_around_hit: int | None = None


@dataclass(frozen=True)
class SearchSnapshot:
    """The complete, immutable configuration of one search.

    Attributes:
        view: Active editing surface; None when nothing was submitted.
        filters: Active metadata filters by field id.
        gap: Gap-fill data, only sent along with an expert pattern.
        global_settings: Page size, sampling and context size.
        viewed_results: ``hits``, ``docs`` or None when no results are shown.
        results: Settings of the viewed result view.
    """

    view: ViewState | None = None
    filters: FilterSet = field(default_factory=dict)
    gap: str | None = None
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    viewed_results: str | None = None
    results: ResultSettings = field(default_factory=ResultSettings)

    @property
    def form(self) -> str:
        return self.view.form if self.view is not None else FORM_SEARCH

    @property
    def mode(self) -> str | None:
        return self.view.mode if self.view is not None else None

    @property
    def active_filters(self) -> FilterSet:
        """Filters that take part in the search; the simple view has none."""
        if isinstance(self.view, SimpleView):
            return {}
        return {k: v for k, v in self.filters.items() if v.is_active}

    @property
    def active_gap(self) -> str | None:
        """Gap data, which only the expert view sends."""
        if isinstance(self.view, ExpertView) and self.gap:
            return self.gap
        return None


@dataclass(frozen=True)
class InterfaceState:
    """Which form and view are shown, and which result view is open."""

    form: str = FORM_SEARCH
    pattern_mode: str = "simple"
    explore_mode: str = "ngram"
    viewed_results: str | None = None

    @property
    def mode(self) -> str:
        return self.explore_mode if self.form == FORM_EXPLORE else self.pattern_mode

    @classmethod
    def for_view(cls, view: ViewState, viewed_results: str | None = None) -> InterfaceState:
        if view.form == FORM_EXPLORE:
            return cls(form=FORM_EXPLORE, explore_mode=view.mode, viewed_results=viewed_results)
        return cls(form=FORM_SEARCH, pattern_mode=view.mode, viewed_results=viewed_results)
