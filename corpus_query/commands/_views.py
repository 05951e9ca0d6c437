"""Shared helpers for commands that build or show search state."""

from __future__ import annotations

from typing import Any

import click

from corpus_query.corpus import CorpusInfo
from corpus_query.filters import decode_filters
from corpus_query.state.classifier import ClassificationContext, classify
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.views import (
    RESULT_VIEWS,
    AdvancedView,
    CorporaView,
    ExpertView,
    ExtendedView,
    FrequencyView,
    GroupSpec,
    NgramView,
    SimpleView,
    ViewState,
)
from corpus_query.utils.output import print_fields

view_option = click.option(
    "--view",
    "viewed_results",
    type=click.Choice(RESULT_VIEWS),
    default=None,
    help="Result view that is open (hits or docs)",
)
filter_option = click.option("--filter", "-f", "filter_text", default=None, help="Metadata filter")
group_option = click.option("--group", "-g", default=None, help="Comma-separated group keys")
gap_option = click.option("--gap", default=None, help="Gap-fill data (expert view only)")


def classification_context(
    settings: InterfaceSettings,
    pattern: str | None,
    filter_text: str | None = None,
    group: str | None = None,
    viewed_results: str | None = None,
    gap: str | None = None,
) -> ClassificationContext:
    return ClassificationContext(
        pattern=pattern or None,
        filters=decode_filters(filter_text, settings.corpus.fields),
        groups=GroupSpec.parse(group),
        gap=gap or None,
        viewed_results=viewed_results,
        settings=settings,
    )


def classify_options(
    settings: InterfaceSettings, **kwargs: Any
) -> tuple[ClassificationContext, ViewState]:
    ctx = classification_context(settings, **kwargs)
    return ctx, classify(ctx)


def _value_text(value: str, case_sensitive: bool) -> str:
    return f"{value} (case-sensitive)" if case_sensitive else value


def _label(corpus: CorpusInfo, annotation_id: str) -> str:
    annotation = corpus.annotation(annotation_id)
    return annotation.label if annotation is not None else annotation_id


def field_label(corpus: CorpusInfo, field_id: str) -> str:
    definition = corpus.field(field_id)
    return definition.label if definition is not None else field_id


def describe_view(view: ViewState, corpus: CorpusInfo) -> dict[str, Any]:
    """Field/value rows describing what a view shows, annotations by label."""
    rows: dict[str, Any] = {"form": view.form, "view": view.mode}
    if isinstance(view, SimpleView):
        value = view.value
        rows[_label(corpus, value.id)] = _value_text(value.value, value.case_sensitive)
    elif isinstance(view, ExtendedView):
        for value in view.active_values():
            rows[_label(corpus, value.id)] = _value_text(value.value, value.case_sensitive)
        rows["within"] = view.within
        rows["split batch"] = "yes" if view.split_batch else None
    elif isinstance(view, (AdvancedView, ExpertView)):
        rows["pattern"] = view.pattern
    elif isinstance(view, FrequencyView):
        rows["annotation"] = _label(corpus, view.annotation_id)
    elif isinstance(view, NgramView):
        rows["group by"] = _label(corpus, view.group_annotation_id)
        rows["size"] = f"{view.size} (max {view.max_size})"
        rows["tokens"] = " ".join(
            f"{t.id}={_value_text(t.value, t.case_sensitive)}" if t.value else "[]"
            for t in view.tokens[: view.size]
        )
    elif isinstance(view, CorporaView):
        rows["group by"] = view.group_by
        rows["display"] = view.group_display_mode
    return rows


def show_view(view: ViewState, corpus: CorpusInfo, title: str | None = None) -> None:
    print_fields(describe_view(view, corpus), title=title)


def insensitive_only(view: ViewState, corpus: CorpusInfo) -> list[str]:
    """Annotations a view asks to match case-sensitively that cannot be."""
    if isinstance(view, SimpleView):
        values = [view.value]
    elif isinstance(view, ExtendedView):
        values = view.active_values()
    else:
        return []
    ids = []
    for value in values:
        annotation = corpus.annotation(value.id)
        if value.case_sensitive and annotation is not None and not annotation.case_sensitive_search:
            ids.append(value.id)
    return ids
