"""Unit tests for backend parameters and snapshot serialization."""

from __future__ import annotations

import json

import pytest

from corpus_query.corpus import UiKind, ValueKind
from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.filters import FilterValue
from corpus_query.pattern import AnnotationValue
from corpus_query.state import (
    CorporaView,
    ExpertView,
    ExtendedView,
    GlobalSettings,
    GroupSpec,
    InterfaceSettings,
    NgramToken,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
    to_search_parameters,
)
from corpus_query.state.serialize import (
    snapshot_from_dict,
    snapshot_to_dict,
    stable_json,
    view_from_dict,
    view_to_dict,
)
from corpus_query.state.snapshot import PARAMETER_ORDER, validate_snapshot

GENRE = FilterValue("genre", UiKind.SELECT, ("poetry",))


# ---------------------------------------------------------------------------
# Group keys
# ---------------------------------------------------------------------------


class TestGroupSpec:
    def test_parse(self) -> None:
        groups = GroupSpec.parse("hit:lemma:s, genre:s ,context:L1-3")
        assert groups.keys == ("hit:lemma:s", "genre:s", "context:L1-3")
        assert groups.group_by == ("hit:lemma", "genre")
        assert groups.context_keys == ("context:L1-3",)
        assert groups.case_sensitive is True

    def test_case_insensitive_when_mixed(self) -> None:
        assert GroupSpec.parse("hit:lemma:s,genre").case_sensitive is False

    def test_empty(self) -> None:
        groups = GroupSpec.parse(None)
        assert groups.keys == ()
        assert groups.case_sensitive is False
        assert groups.to_param() is None

    def test_from_settings(self) -> None:
        results = ResultSettings(
            group_by=("hit:lemma",), group_by_advanced=("context:L1",), case_sensitive=True
        )
        assert GroupSpec.from_settings(results).to_param() == "hit:lemma:s,context:L1"


# ---------------------------------------------------------------------------
# Backend parameters
# ---------------------------------------------------------------------------


class TestSearchParameters:
    def test_full_parameter_set(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=ExtendedView({"lemma": AnnotationValue("lemma", "cat")}),
            filters={"genre": GENRE},
            viewed_results="hits",
            global_settings=GlobalSettings(page_size=20, words_around_hit=5),
            results=ResultSettings(
                group_by=("hit:lemma",), sort="-size", view_group="cat", page=2
            ),
        )
        params = to_search_parameters(snapshot, settings)
        assert params == {
            "filter": '+genre:"poetry"',
            "first": 40,
            "group": "hit:lemma:i",
            "number": 20,
            "patt": '[lemma="cat"]',
            "pattgapdata": None,
            "sample": None,
            "samplenum": None,
            "sampleseed": None,
            "sort": "-size",
            "viewgroup": "cat",
            "wordsaroundhit": 5,
        }
        assert tuple(params) == PARAMETER_ORDER

    def test_nothing_viewed(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(view=SimpleView(AnnotationValue("word", "cat")))
        assert to_search_parameters(snapshot, settings) is None

    def test_simple_view_ignores_filters(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=SimpleView(AnnotationValue("word", "cat")),
            filters={"genre": GENRE},
            viewed_results="hits",
        )
        assert to_search_parameters(snapshot, settings)["filter"] is None

    def test_gap_data_only_from_expert_view(self, settings: InterfaceSettings) -> None:
        expert = SearchSnapshot(view=ExpertView('"a"'), gap="x\ty", viewed_results="hits")
        assert to_search_parameters(expert, settings)["pattgapdata"] == "x\ty"

        extended = SearchSnapshot(
            view=ExtendedView({"word": AnnotationValue("word", "a")}),
            gap="x\ty",
            viewed_results="hits",
        )
        assert to_search_parameters(extended, settings)["pattgapdata"] is None

    def test_gap_data_needs_pattern(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(view=ExpertView(), gap="x", viewed_results="docs")
        assert to_search_parameters(snapshot, settings)["pattgapdata"] is None

    def test_view_group_needs_grouping(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=CorporaView(),
            viewed_results="docs",
            results=ResultSettings(view_group="poetry"),
        )
        assert to_search_parameters(snapshot, settings)["viewgroup"] is None

    def test_sample_percentage(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=ExpertView('"a"'),
            viewed_results="hits",
            global_settings=GlobalSettings(sample_size=10, sample_seed=42),
        )
        params = to_search_parameters(snapshot, settings)
        assert (params["sample"], params["samplenum"], params["sampleseed"]) == (10, None, 42)

    def test_sample_count(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=ExpertView('"a"'),
            viewed_results="hits",
            global_settings=GlobalSettings(sample_mode="count", sample_size=100, sample_seed=1),
        )
        params = to_search_parameters(snapshot, settings)
        assert (params["sample"], params["samplenum"]) == (None, 100)

    def test_sample_without_seed(self, settings: InterfaceSettings) -> None:
        snapshot = SearchSnapshot(
            view=ExpertView('"a"'),
            viewed_results="hits",
            global_settings=GlobalSettings(sample_size=10),
        )
        with pytest.raises(SnapshotConfigurationError) as exc_info:
            to_search_parameters(snapshot, settings)
        assert exc_info.value.setting == "sampleseed"

    def test_unknown_sample_mode(self) -> None:
        snapshot = SearchSnapshot(global_settings=GlobalSettings(sample_mode="random"))
        with pytest.raises(SnapshotConfigurationError):
            validate_snapshot(snapshot)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialize:
    @pytest.mark.parametrize(
        "view",
        [
            SimpleView(AnnotationValue("word", "Cat", case_sensitive=True)),
            ExtendedView(
                {"pos": AnnotationValue("pos", "N", kind=ValueKind.POS)},
                within="s",
                split_batch=True,
            ),
            ExpertView('[word="a"]'),
            NgramView("lemma", size=2, tokens=(NgramToken("word", "a"), NgramToken("lemma"))),
            CorporaView("genre", "table"),
        ],
    )
    def test_view_survives_json(self, view) -> None:
        data = json.loads(json.dumps(view_to_dict(view)))
        assert view_from_dict(data) == view

    def test_view_dict_names_its_type(self) -> None:
        assert view_to_dict(ExpertView("[]")) == {"type": "expert", "pattern": "[]"}
        assert view_to_dict(None) is None
        assert view_from_dict(None) is None

    def test_snapshot_survives_json(self) -> None:
        snapshot = SearchSnapshot(
            view=SimpleView(AnnotationValue("word", "cat")),
            filters={"genre": GENRE},
            gap="x",
            global_settings=GlobalSettings(page_size=20, sample_size=5.5, sample_seed=3),
            viewed_results="hits",
            results=ResultSettings(group_by=("hit:word",), group_by_advanced=("context:L1",)),
        )
        data = json.loads(json.dumps(snapshot_to_dict(snapshot)))
        assert snapshot_from_dict(data) == snapshot

    def test_stable_json_ignores_key_order(self) -> None:
        assert stable_json({"b": 1, "a": [1, 2]}) == stable_json({"a": [1, 2], "b": 1})
        assert stable_json({"a": 1}) == '{"a":1}'
