"""Turn a search snapshot into backend query parameters."""

from __future__ import annotations

from typing import Any

from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.filters import encode_filters
from corpus_query.state.compiler import compile_view
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.views import (
    SAMPLE_COUNT,
    SAMPLE_PERCENTAGE,
    GroupSpec,
    SearchSnapshot,
)

PARAMETER_ORDER: tuple[str, ...] = (
    "filter",
    "first",
    "group",
    "number",
    "patt",
    "pattgapdata",
    "sample",
    "samplenum",
    "sampleseed",
    "sort",
    "viewgroup",
    "wordsaroundhit",
)


def validate_snapshot(snapshot: SearchSnapshot) -> None:
    """Reject settings the backend cannot honor.

    Raises:
        SnapshotConfigurationError: If a sample size is set without a seed.
    """
    settings = snapshot.global_settings
    if settings.sample_size is not None and settings.sample_seed is None:
        raise SnapshotConfigurationError("sampleseed", "a sample size requires a sample seed")
    if settings.sample_mode not in (SAMPLE_PERCENTAGE, SAMPLE_COUNT):
        raise SnapshotConfigurationError("sample_mode", f"unknown mode {settings.sample_mode!r}")


def to_search_parameters(
    snapshot: SearchSnapshot, settings: InterfaceSettings
) -> dict[str, Any] | None:
    """Build the backend query for a snapshot.

    Returns:
        Parameters in a fixed order with None for unset ones, or None when no
        result view is open.

    Raises:
        SnapshotConfigurationError: If the snapshot is misconfigured.
    """
    if snapshot.viewed_results is None or snapshot.view is None:
        return None
    validate_snapshot(snapshot)

    global_settings = snapshot.global_settings
    results = snapshot.results
    pattern = compile_view(snapshot.view, settings).pattern
    sampling = global_settings.sample_size is not None

    return {
        "filter": encode_filters(snapshot.active_filters.values()),
        "first": global_settings.page_size * results.page,
        "group": GroupSpec.from_settings(results).to_param(),
        "number": global_settings.page_size,
        "patt": pattern,
        "pattgapdata": snapshot.active_gap if pattern else None,
        "sample": (
            global_settings.sample_size
            if sampling and global_settings.sample_mode == SAMPLE_PERCENTAGE
            else None
        ),
        "samplenum": (
            global_settings.sample_size
            if sampling and global_settings.sample_mode == SAMPLE_COUNT
            else None
        ),
        "sampleseed": global_settings.sample_seed if sampling else None,
        "sort": results.sort,
        "viewgroup": results.view_group if results.is_grouped else None,
        "wordsaroundhit": global_settings.words_around_hit,
    }
