"""Plain-data (JSON-ready) form of search snapshots.

Used to attach a snapshot to a navigation entry or a history record, and to
compare the pattern-bearing part of two snapshots.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from corpus_query.corpus import UiKind, ValueKind
from corpus_query.filters import FilterValue
from corpus_query.pattern import AnnotationValue
from corpus_query.state.views import (
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GlobalSettings,
    NgramToken,
    NgramView,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
    ViewState,
)

_VIEW_TYPES: dict[str, type] = {
    cls.mode: cls
    for cls in (
        SimpleView, ExtendedView, AdvancedView, ExpertView, FrequencyView, NgramView, CorporaView
    )
}


def view_to_dict(view: ViewState | None) -> dict[str, Any] | None:
    if view is None:
        return None
    return {"type": view.mode, **asdict(view)}


def _annotation_value(data: dict[str, Any]) -> AnnotationValue:
    return AnnotationValue(
        id=data["id"],
        value=data.get("value", ""),
        case_sensitive=bool(data.get("case_sensitive", False)),
        kind=ValueKind(data.get("kind", ValueKind.TEXT.value)),
    )


def view_from_dict(data: dict[str, Any] | None) -> ViewState | None:
    if not data:
        return None
    data = dict(data)
    cls = _VIEW_TYPES[data.pop("type")]
    if cls is SimpleView:
        return SimpleView(value=_annotation_value(data["value"]))
    if cls is ExtendedView:
        return ExtendedView(
            annotation_values={
                k: _annotation_value(v) for k, v in data.get("annotation_values", {}).items()
            },
            within=data.get("within"),
            split_batch=bool(data.get("split_batch", False)),
        )
    if cls is NgramView:
        data["tokens"] = tuple(NgramToken(**t) for t in data.get("tokens", ()))
    return cls(**data)


def snapshot_to_dict(snapshot: SearchSnapshot) -> dict[str, Any]:
    return {
        "view": view_to_dict(snapshot.view),
        "filters": {k: asdict(v) for k, v in snapshot.filters.items()},
        "gap": snapshot.gap,
        "global_settings": asdict(snapshot.global_settings),
        "viewed_results": snapshot.viewed_results,
        "results": asdict(snapshot.results),
    }


def snapshot_from_dict(data: dict[str, Any]) -> SearchSnapshot:
    results = dict(data.get("results") or {})
    for key in ("group_by", "group_by_advanced"):
        results[key] = tuple(results.get(key) or ())
    return SearchSnapshot(
        view=view_from_dict(data.get("view")),
        filters={
            k: FilterValue(id=v["id"], ui_kind=UiKind(v["ui_kind"]), values=tuple(v["values"]))
            for k, v in (data.get("filters") or {}).items()
        },
        gap=data.get("gap"),
        global_settings=GlobalSettings(**(data.get("global_settings") or {})),
        viewed_results=data.get("viewed_results"),
        results=ResultSettings(**results),
    )


def stable_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))
