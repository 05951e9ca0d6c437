"""Serialize a search snapshot into a page URL and back.

Encoding writes the backend query parameters plus two interface-only
parameters: ``interface`` (JSON holding the form and view mode) and
``groupDisplayMode``. Decoding is total: every parameter that is missing or
invalid falls back to its default, so any URL yields a usable state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, unquote, urlencode, urlsplit

from corpus_query.filters import FilterSet, decode_filters
from corpus_query.pattern import AnnotationValue
from corpus_query.state.classifier import (
    ClassificationContext,
    advanced_state,
    classify,
    corpora_state,
    expert_state,
    extended_state,
    frequency_state,
    ngram_state,
    simple_state,
)
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.snapshot import to_search_parameters
from corpus_query.state.views import (
    DEFAULT_PAGE_SIZE,
    DOCS,
    EXPLORE_MODES,
    FORM_EXPLORE,
    FORM_SEARCH,
    HITS,
    PAGE_SIZES,
    PATTERN_MODES,
    RESULT_VIEWS,
    SAMPLE_COUNT,
    SAMPLE_PERCENTAGE,
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GlobalSettings,
    GroupSpec,
    InterfaceState,
    NgramToken,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
    ViewState,
)

log = logging.getLogger(__name__)

DEFAULT_BASE_PATH = "/corpus-frontend/search"
DEFAULT_MAX_URL_LENGTH = 4000
DEFAULT_NGRAM_SIZE = 3
MAX_WORDS_AROUND_HIT = 10

# Dropped, in this order, when the URL exceeds its length budget
TRUNCATED_PARAMETERS: tuple[str, ...] = ("patt", "pattgapdata")

INTERFACE_PARAM = "interface"
GROUP_DISPLAY_MODE_PARAM = "groupDisplayMode"


@dataclass(frozen=True)
class EncodedUrl:
    """A snapshot's URL.

    Attributes:
        url: Path plus query string.
        path: Path only, ending in the viewed result view if any.
        params: The query parameters as written.
        truncated: True when the pattern was dropped to respect the budget.
    """

    url: str
    path: str
    params: dict[str, str] = field(default_factory=dict)
    truncated: bool = False


@dataclass(frozen=True)
class PatternStates:
    """What every search view shows for a decoded query."""

    simple: SimpleView
    extended: ExtendedView
    advanced: AdvancedView
    expert: ExpertView


@dataclass(frozen=True)
class ExploreStates:
    """What every explore view shows for a decoded query."""

    frequency: FrequencyView
    ngram: NgramView
    corpora: CorporaView


@dataclass(frozen=True)
class DecodedState:
    """Everything a URL says about the search and the interface."""

    interface: InterfaceState
    patterns: PatternStates
    explore: ExploreStates
    filters: FilterSet = field(default_factory=dict)
    gap: str | None = None
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    hits: ResultSettings = field(default_factory=ResultSettings)
    docs: ResultSettings = field(default_factory=ResultSettings)

    @property
    def view(self) -> ViewState:
        states = self.explore if self.interface.form == FORM_EXPLORE else self.patterns
        return getattr(states, self.interface.mode)

    def to_snapshot(self) -> SearchSnapshot:
        viewed = self.interface.viewed_results
        return SearchSnapshot(
            view=self.view,
            filters=self.filters,
            gap=self.gap,
            global_settings=self.global_settings,
            viewed_results=viewed,
            results=self.docs if viewed == DOCS else self.hits,
        )


def _format(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(text: str | None) -> int | float | None:
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _integer(text: str | None) -> int | None:
    number = _number(text)
    if isinstance(number, float):
        return int(number) if number.is_integer() else None
    return number


class UrlCodec:
    """Encode snapshots to URLs and decode URLs to per-view state.

    Args:
        settings: Corpus metadata and interface options.
        base_path: Path of the search page, without the result view segment.
        max_url_length: URLs longer than this drop the pattern.
    """

    def __init__(
        self,
        settings: InterfaceSettings,
        base_path: str = DEFAULT_BASE_PATH,
        max_url_length: int = DEFAULT_MAX_URL_LENGTH,
    ) -> None:
        self.settings = settings
        self.base_path = base_path.rstrip("/")
        self.max_url_length = max_url_length

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, snapshot: SearchSnapshot) -> EncodedUrl:
        """Build the URL for a snapshot, dropping the pattern if it is too long.

        Raises:
            SnapshotConfigurationError: If the snapshot is misconfigured.
        """
        search = to_search_parameters(snapshot, self.settings) or {}
        params = {key: _format(value) for key, value in search.items() if value not in (None, "")}

        if snapshot.view is not None:
            interface = self._interface_param(snapshot.view)
            params[INTERFACE_PARAM] = json.dumps(interface, separators=(",", ":"))
        if snapshot.viewed_results is not None and snapshot.results.group_display_mode:
            params[GROUP_DISPLAY_MODE_PARAM] = snapshot.results.group_display_mode

        path = self.base_path + "/"
        if snapshot.viewed_results is not None:
            path += snapshot.viewed_results

        url = self._join(path, params)
        truncated = False
        if len(url) > self.max_url_length:
            log.info(
                "URL of %d characters exceeds %d, dropping the pattern",
                len(url),
                self.max_url_length,
            )
            params = {k: v for k, v in params.items() if k not in TRUNCATED_PARAMETERS}
            url = self._join(path, params)
            truncated = True
        return EncodedUrl(url=url, path=path, params=params, truncated=truncated)

    @staticmethod
    def _interface_param(view: ViewState) -> dict[str, str]:
        key = "exploreMode" if view.form == FORM_EXPLORE else "patternMode"
        return {"form": view.form, key: view.mode}

    @staticmethod
    def _join(path: str, params: dict[str, str]) -> str:
        return f"{path}?{urlencode(params)}" if params else path

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, url: str) -> DecodedState:
        """Reconstruct the search and interface state a URL describes."""
        try:
            parts = urlsplit(url)
        except ValueError as e:
            log.debug("Cannot split URL %r: %s", url, e)
            parts = urlsplit("")
        segments = [unquote(s) for s in parts.path.split("/") if s]
        viewed = segments[-1] if segments and segments[-1] in RESULT_VIEWS else None

        # Repeated parameters are ambiguous and treated as absent
        params = {
            key: values[0]
            for key, values in parse_qs(parts.query, keep_blank_values=True).items()
            if len(values) == 1
        }

        groups = GroupSpec.parse(params.get("group"))
        group_display_mode = params.get(GROUP_DISPLAY_MODE_PARAM) or None
        ctx = ClassificationContext(
            pattern=params.get("patt") or None,
            filters=decode_filters(params.get("filter"), self.settings.corpus.fields),
            groups=groups,
            gap=params.get("pattgapdata") or None,
            viewed_results=viewed,
            group_display_mode=group_display_mode,
            settings=self.settings,
        )

        global_settings = self._global_settings(params)
        results = self._result_settings(
            params, groups, group_display_mode, global_settings.page_size
        )

        return DecodedState(
            interface=self._interface(params.get(INTERFACE_PARAM), ctx, viewed),
            patterns=self._pattern_states(ctx),
            explore=self._explore_states(ctx),
            filters=ctx.filters,
            gap=ctx.gap,
            global_settings=global_settings,
            hits=results if viewed == HITS else ResultSettings(),
            docs=results if viewed == DOCS else ResultSettings(),
        )

    def _global_settings(self, params: dict[str, str]) -> GlobalSettings:
        page_size = _integer(params.get("number"))
        if page_size not in PAGE_SIZES:
            page_size = DEFAULT_PAGE_SIZE

        words_around_hit = _integer(params.get("wordsaroundhit"))
        if words_around_hit is not None and not 0 <= words_around_hit <= MAX_WORDS_AROUND_HIT:
            words_around_hit = None

        sample_mode = SAMPLE_PERCENTAGE
        sample_size: float | None = None
        sample_count = _integer(params.get("samplenum"))
        sample_percentage = _number(params.get("sample"))
        if sample_count is not None and sample_count >= 0:
            sample_mode, sample_size = SAMPLE_COUNT, sample_count
        elif sample_percentage is not None and 0 <= sample_percentage <= 100:
            sample_size = sample_percentage

        return GlobalSettings(
            page_size=page_size,
            sample_mode=sample_mode,
            sample_size=sample_size,
            sample_seed=_integer(params.get("sampleseed")),
            words_around_hit=words_around_hit,
        )

    @staticmethod
    def _result_settings(
        params: dict[str, str],
        groups: GroupSpec,
        group_display_mode: str | None,
        page_size: int,
    ) -> ResultSettings:
        first = _integer(params.get("first"))
        page = first // page_size if first is not None and first > 0 else 0
        return ResultSettings(
            group_by=groups.group_by,
            group_by_advanced=groups.context_keys,
            case_sensitive=groups.case_sensitive,
            sort=params.get("sort") or None,
            view_group=(params.get("viewgroup") or None) if groups.keys else None,
            page=page,
            group_display_mode=group_display_mode,
        )

    def _pattern_states(self, ctx: ClassificationContext) -> PatternStates:
        return PatternStates(
            simple=simple_state(ctx) or SimpleView(value=AnnotationValue(id=self.settings.primary)),
            extended=extended_state(ctx) or ExtendedView(),
            advanced=advanced_state(ctx) or AdvancedView(),
            expert=expert_state(ctx) or ExpertView(),
        )

    def _explore_states(self, ctx: ClassificationContext) -> ExploreStates:
        primary = self.settings.primary
        max_size = self.settings.ngram_max_size
        return ExploreStates(
            frequency=frequency_state(ctx) or FrequencyView(annotation_id=primary),
            ngram=ngram_state(ctx)
            or NgramView(
                group_annotation_id=primary,
                size=min(DEFAULT_NGRAM_SIZE, max_size),
                max_size=max_size,
                tokens=tuple(NgramToken(id=primary) for _ in range(max_size)),
            ),
            corpora=corpora_state(ctx) or CorporaView(),
        )

    def _interface(
        self, text: str | None, ctx: ClassificationContext, viewed: str | None
    ) -> InterfaceState:
        interface = self._interface_from_param(text, viewed)
        if interface is None:
            interface = InterfaceState.for_view(classify(ctx), viewed)
        return interface

    def _interface_from_param(
        self, text: str | None, viewed: str | None
    ) -> InterfaceState | None:
        """Read the ``interface`` parameter; None when it is absent or malformed.

        A well-formed parameter always picks the view, even one that cannot
        show the decoded query; the query stays available in the other view
        states. Only an ``advanced`` mode is replaced by ``expert`` when the
        query builder is disabled.
        """
        if not text or not text.startswith("{"):
            return None
        try:
            data = json.loads(text)
        except ValueError as e:
            log.debug("Ignoring malformed interface parameter: %s", e)
            return None
        if not isinstance(data, dict):
            return None

        form = data.get("form")
        if form == FORM_SEARCH:
            mode = data.get("patternMode")
            if mode not in PATTERN_MODES:
                return None
            if mode == "advanced" and not self.settings.advanced_enabled:
                mode = "expert"
            return InterfaceState(form=FORM_SEARCH, pattern_mode=mode, viewed_results=viewed)

        if form == FORM_EXPLORE:
            mode = data.get("exploreMode")
            if mode not in EXPLORE_MODES:
                return None
            return InterfaceState(form=FORM_EXPLORE, explore_mode=mode, viewed_results=viewed)

        return None
