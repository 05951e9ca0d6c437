"""Unit tests for the URL codec."""

from __future__ import annotations

from dataclasses import replace
from urllib.parse import urlencode

import pytest

from corpus_query.corpus import UiKind
from corpus_query.filters import FilterValue
from corpus_query.pattern import AnnotationValue
from corpus_query.state import (
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GlobalSettings,
    InterfaceSettings,
    NgramToken,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
)
from corpus_query.url import UrlCodec

BASE = "/corpus-frontend/testcorpus/search"


def _url(view: str = "hits", **params: str) -> str:
    return f"{BASE}/{view}?{urlencode(params)}" if params else f"{BASE}/{view}"


def _interface(form: str, key: str, mode: str) -> str:
    return f'{{"form":"{form}","{key}":"{mode}"}}'


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestEncode:
    def test_simple_search(self, codec: UrlCodec) -> None:
        snapshot = SearchSnapshot(
            view=SimpleView(AnnotationValue("word", "cat")), viewed_results="hits"
        )
        encoded = codec.encode(snapshot)
        assert encoded.path == f"{BASE}/hits"
        assert encoded.params == {
            "first": "0",
            "number": "50",
            "patt": '"cat"',
            "interface": '{"form":"search","patternMode":"simple"}',
        }
        assert encoded.url == f"{BASE}/hits?{urlencode(encoded.params)}"
        assert encoded.truncated is False

    def test_no_results_viewed(self, codec: UrlCodec) -> None:
        snapshot = SearchSnapshot(view=SimpleView(AnnotationValue("word", "cat")))
        encoded = codec.encode(snapshot)
        assert encoded.path == f"{BASE}/"
        assert list(encoded.params) == ["interface"]

    def test_explore_interface(self, codec: UrlCodec) -> None:
        snapshot = SearchSnapshot(
            view=CorporaView("genre", "table"),
            viewed_results="docs",
            results=ResultSettings(group_by=("genre",), group_display_mode="table"),
        )
        params = codec.encode(snapshot).params
        assert params["interface"] == _interface("explore", "exploreMode", "corpora")
        assert params["groupDisplayMode"] == "table"
        assert params["group"] == "genre:i"

    def test_integral_float_is_written_as_int(self, codec: UrlCodec) -> None:
        snapshot = SearchSnapshot(
            view=ExpertView('"a"'),
            viewed_results="hits",
            global_settings=GlobalSettings(sample_size=10.0, sample_seed=1),
        )
        assert codec.encode(snapshot).params["sample"] == "10"

    def test_long_pattern_is_dropped(self, codec: UrlCodec) -> None:
        snapshot = SearchSnapshot(
            view=ExpertView('[word="' + "a" * 5000 + '"]'),
            gap="x\ty",
            viewed_results="hits",
        )
        encoded = codec.encode(snapshot)
        assert encoded.truncated is True
        assert "patt" not in encoded.params
        assert "pattgapdata" not in encoded.params
        assert "interface" in encoded.params
        assert len(encoded.url) <= 4000

    def test_budget_is_configurable(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(view=ExpertView('"' + "a" * 80 + '"'), viewed_results="hits")
        assert UrlCodec(settings, BASE).encode(snapshot).truncated is False
        assert UrlCodec(settings, BASE, max_url_length=100).encode(snapshot).truncated is True


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestDecode:
    def test_pattern_is_classified(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(patt='"cat"'))
        assert decoded.interface.form == "search"
        assert decoded.interface.pattern_mode == "simple"
        assert decoded.interface.viewed_results == "hits"
        assert decoded.view == SimpleView(AnnotationValue("word", "cat"))

    def test_every_view_is_populated(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(patt='"cat"'))
        assert decoded.patterns.extended == ExtendedView({"word": AnnotationValue("word", "cat")})
        assert decoded.patterns.advanced == AdvancedView('"cat"')
        assert decoded.patterns.expert == ExpertView('"cat"')
        assert decoded.explore.frequency == FrequencyView("word")
        assert decoded.explore.corpora == CorporaView()

    def test_defaults(self, codec: UrlCodec) -> None:
        decoded = codec.decode(BASE)
        assert decoded.interface.viewed_results is None
        assert decoded.view == SimpleView(AnnotationValue("word"))
        assert decoded.global_settings == GlobalSettings()
        assert decoded.filters == {}
        assert decoded.explore.ngram == NgramView(
            "word", size=3, max_size=5, tokens=(NgramToken("word"),) * 5
        )

    @pytest.mark.parametrize(
        "url", ["::::", "?", "/hits?first=x&number=&sample=abc", "%zz", "http://[::1"]
    )
    def test_garbage_never_raises(self, codec: UrlCodec, url: str) -> None:
        decoded = codec.decode(url)
        assert decoded.view is not None

    def test_paging(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(first="120", number="20"))
        assert decoded.global_settings.page_size == 20
        assert decoded.hits.page == 6

    def test_invalid_page_size(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(first="100", number="33"))
        assert decoded.global_settings.page_size == 50
        assert decoded.hits.page == 2

    def test_words_around_hit_range(self, codec: UrlCodec) -> None:
        assert codec.decode(_url(wordsaroundhit="3")).global_settings.words_around_hit == 3
        assert codec.decode(_url(wordsaroundhit="11")).global_settings.words_around_hit is None

    def test_sample_percentage(self, codec: UrlCodec) -> None:
        settings = codec.decode(_url(sample="10", sampleseed="5")).global_settings
        assert (settings.sample_mode, settings.sample_size, settings.sample_seed) == (
            "percentage",
            10,
            5,
        )

    def test_sample_count_wins(self, codec: UrlCodec) -> None:
        settings = codec.decode(_url(sample="10", samplenum="100")).global_settings
        assert (settings.sample_mode, settings.sample_size) == ("count", 100)

    def test_sample_out_of_range(self, codec: UrlCodec) -> None:
        assert codec.decode(_url(sample="150")).global_settings.sample_size is None

    def test_grouping(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(group="hit:lemma:s,context:L1-3", viewgroup="cat"))
        assert decoded.hits == ResultSettings(
            group_by=("hit:lemma",),
            group_by_advanced=("context:L1-3",),
            case_sensitive=True,
            view_group="cat",
        )
        assert decoded.docs == ResultSettings()

    def test_view_group_needs_grouping(self, codec: UrlCodec) -> None:
        assert codec.decode(_url(viewgroup="cat")).hits.view_group is None

    def test_docs_settings(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url("docs", sort="title"))
        assert decoded.docs.sort == "title"
        assert decoded.hits == ResultSettings()
        assert decoded.to_snapshot().results.sort == "title"

    def test_filters(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url("docs", filter='+title:("World" "War" "2")'))
        assert decoded.filters == {"title": FilterValue("title", UiKind.TEXT, ("World War 2",))}
        assert isinstance(decoded.view, ExtendedView)

    def test_repeated_parameter_is_ignored(self, codec: UrlCodec) -> None:
        decoded = codec.decode(f"{BASE}/hits?patt=%22a%22&patt=%22b%22")
        assert decoded.patterns.expert == ExpertView()

    def test_unparseable_pattern_goes_to_expert(self, codec: UrlCodec) -> None:
        decoded = codec.decode(_url(patt='[word="a"'))
        assert decoded.view == ExpertView('[word="a"')

    def test_trailing_slash_in_path(self, codec: UrlCodec) -> None:
        decoded = codec.decode(f"{BASE}/hits/?patt=%22a%22")
        assert decoded.interface.viewed_results == "hits"


# ---------------------------------------------------------------------------
# Interface parameter
# ---------------------------------------------------------------------------


class TestInterfaceParameter:
    def test_named_view_wins(self, codec: UrlCodec) -> None:
        url = _url(patt='"cat"', interface=_interface("search", "patternMode", "expert"))
        assert codec.decode(url).view == ExpertView('"cat"')

    def test_extended_can_hold_simple_query(self, codec: UrlCodec) -> None:
        url = _url(patt='"cat"', interface=_interface("search", "patternMode", "extended"))
        assert isinstance(codec.decode(url).view, ExtendedView)

    def test_named_view_wins_even_without_query(self, codec: UrlCodec) -> None:
        url = _url(patt='[lemma="cat"]', interface=_interface("search", "patternMode", "simple"))
        decoded = codec.decode(url)
        assert decoded.interface.pattern_mode == "simple"
        assert decoded.view == SimpleView(AnnotationValue("word"))
        assert decoded.patterns.extended == ExtendedView({"lemma": AnnotationValue("lemma", "cat")})

    def test_advanced_falls_back_to_expert(self, settings: InterfaceSettings) -> None:
        codec = UrlCodec(replace(settings, advanced_enabled=False), BASE)
        url = _url(
            patt='[word="a" | word="b"]', interface=_interface("search", "patternMode", "advanced")
        )
        decoded = codec.decode(url)
        assert decoded.interface.pattern_mode == "expert"
        assert decoded.view == ExpertView('[word="a" | word="b"]')

    def test_explore_mode(self, codec: UrlCodec) -> None:
        url = _url(
            patt='"cat"', group="hit:word", interface=_interface("explore", "exploreMode", "ngram")
        )
        decoded = codec.decode(url)
        assert decoded.interface.form == "explore"
        assert decoded.view == NgramView(
            "word", size=1, max_size=5, tokens=(NgramToken("word", "cat"),)
        )

    def test_explore_mode_without_query_shows_defaults(self, codec: UrlCodec) -> None:
        url = _url(patt='"cat"', interface=_interface("explore", "exploreMode", "frequency"))
        decoded = codec.decode(url)
        assert decoded.interface.explore_mode == "frequency"
        assert decoded.view == FrequencyView("word")
        assert decoded.patterns.simple == SimpleView(AnnotationValue("word", "cat"))

    @pytest.mark.parametrize(
        "value", ["{bad", "[]", '{"form":"search","patternMode":"fancy"}', '{"form":"other"}']
    )
    def test_unusable_parameter_is_ignored(self, codec: UrlCodec, value: str) -> None:
        decoded = codec.decode(_url(patt='"cat"', interface=value))
        assert decoded.view == SimpleView(AnnotationValue("word", "cat"))


# ---------------------------------------------------------------------------
# Encode -> decode
# ---------------------------------------------------------------------------


ROUND_TRIP_SNAPSHOTS = [
    SearchSnapshot(view=SimpleView(AnnotationValue("word", "the cat")), viewed_results="hits"),
    SearchSnapshot(
        view=ExtendedView({"lemma": AnnotationValue("lemma", "cat dog")}, within="s"),
        filters={"genre": FilterValue("genre", UiKind.SELECT, ("poetry", "prose fiction"))},
        viewed_results="hits",
        results=ResultSettings(group_by=("hit:lemma",), case_sensitive=True, sort="-size", page=2),
    ),
    SearchSnapshot(
        view=ExpertView('[word="a"] []{1,3} [word="b"]'),
        gap="a\tb",
        viewed_results="docs",
        global_settings=GlobalSettings(
            page_size=100, sample_mode="count", sample_size=100, sample_seed=7, words_around_hit=3
        ),
    ),
    SearchSnapshot(
        view=FrequencyView("lemma"),
        viewed_results="hits",
        results=ResultSettings(group_by=("hit:lemma",)),
    ),
    SearchSnapshot(
        view=NgramView("word", size=2, tokens=(NgramToken("lemma", "cat"), NgramToken("word"))),
        viewed_results="hits",
        results=ResultSettings(group_by=("hit:word",)),
    ),
    SearchSnapshot(
        view=CorporaView("genre", "table"),
        viewed_results="docs",
        results=ResultSettings(group_by=("genre",), group_display_mode="table"),
    ),
    SearchSnapshot(view=CorporaView(), viewed_results="docs"),
    SearchSnapshot(
        view=ExtendedView({"word": AnnotationValue("word", "* *")}), viewed_results="hits"
    ),
]


class TestRoundTrip:
    @pytest.mark.parametrize("snapshot", ROUND_TRIP_SNAPSHOTS)
    def test_url_is_stable(self, codec: UrlCodec, snapshot: SearchSnapshot) -> None:
        url = codec.encode(snapshot).url
        assert codec.encode(codec.decode(url).to_snapshot()).url == url

    def test_simple_snapshot_is_restored(self, codec: UrlCodec) -> None:
        snapshot = ROUND_TRIP_SNAPSHOTS[0]
        assert codec.decode(codec.encode(snapshot).url).to_snapshot() == snapshot
