"""Encode a search into a shareable URL."""

from __future__ import annotations

from dataclasses import replace

import click

from corpus_query.cli import Context, pass_context
from corpus_query.commands import EXIT_USAGE_ERROR
from corpus_query.commands._views import (
    classify_options,
    filter_option,
    gap_option,
    group_option,
    insensitive_only,
    show_view,
    view_option,
)
from corpus_query.config import Config
from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.history import QueryHistory, get_history_session
from corpus_query.search import SearchCoordinator
from corpus_query.state.compiler import compile_view, prepare_submission
from corpus_query.state.views import (
    DEFAULT_PAGE_SIZE,
    DOCS,
    FORM_EXPLORE,
    HITS,
    PAGE_SIZES,
    SAMPLE_COUNT,
    SAMPLE_PERCENTAGE,
    ExtendedView,
    GlobalSettings,
    GroupSpec,
    ResultSettings,
    SearchSnapshot,
    SimpleView,
)
from corpus_query.utils.output import error, info, print_url, success, warning


def _record_batch(config: Config, snapshot: SearchSnapshot) -> None:
    """Queue every alternative of a batch query in the history and show the first."""
    codec = config.url_codec()
    with get_history_session(config.history_db) as session:
        history = QueryHistory(session, codec.settings, config.history_max_entries)
        coordinator = SearchCoordinator(codec, history=history)
        try:
            submission = coordinator.submit_batch(snapshot)
        except SnapshotConfigurationError as e:
            error(str(e), hint='Split a query on annotation values, like [lemma="cat|dog"]')
            raise SystemExit(EXIT_USAGE_ERROR) from e

    show_view(submission.snapshot.view, codec.settings.corpus, title="First search")
    print_url(submission.url.url)
    success("Queued the batch in the query history")


@click.command("encode-url")
@click.argument("pattern", required=False)
@filter_option
@group_option
@view_option
@gap_option
@click.option("--page", type=click.IntRange(min=0), default=0, help="Result page (0-based)")
@click.option(
    "--page-size",
    type=click.Choice([str(s) for s in PAGE_SIZES]),
    default=str(DEFAULT_PAGE_SIZE),
    help="Results per page",
)
@click.option("--sort", default=None, help="Sort key")
@click.option("--viewgroup", default=None, help="Open one group of a grouped result")
@click.option("--sample", type=click.FloatRange(0, 100), default=None, help="Sample percentage")
@click.option("--sample-count", type=click.IntRange(min=0), default=None, help="Sample size")
@click.option("--seed", type=int, default=None, help="Sample seed (required when sampling)")
@click.option(
    "--context",
    "words_around_hit",
    type=click.IntRange(0, 10),
    default=None,
    help="Words around hits",
)
@click.option("--record", is_flag=True, default=False, help="Add the search to the query history")
@click.option(
    "--split-batch",
    is_flag=True,
    default=False,
    help="Split alternatives (a|b) into separate searches queued in the query history",
)
@pass_context
def cli(
    ctx: Context,
    pattern: str | None,
    filter_text: str | None,
    group: str | None,
    viewed_results: str | None,
    gap: str | None,
    page: int,
    page_size: str,
    sort: str | None,
    viewgroup: str | None,
    sample: float | None,
    sample_count: int | None,
    seed: int | None,
    words_around_hit: int | None,
    record: bool,
    split_batch: bool,
) -> None:
    """Encode a search into the URL of the search page.

    The query is shown in the simplest view that can hold it. URLs that
    exceed the configured length are stored without the pattern.

    Examples:

    \b
      corpus-query encode-url '[lemma="cat"]' --view hits
      corpus-query encode-url --filter '+genre:("poetry")' --group genre --view docs
      corpus-query encode-url '"the"' --sample 10 --seed 42
      corpus-query encode-url '[lemma="cat|dog"]' --split-batch
    """
    if sample is not None and sample_count is not None:
        error("Use either --sample or --sample-count, not both")
        raise SystemExit(EXIT_USAGE_ERROR)

    config = ctx.require_config()
    settings = config.interface_settings()
    context, view = classify_options(
        settings,
        pattern=pattern,
        filter_text=filter_text,
        group=group,
        viewed_results=viewed_results,
        gap=gap,
    )
    if split_batch:
        if isinstance(view, SimpleView):
            view = ExtendedView({view.value.id: view.value})
        if isinstance(view, ExtendedView):
            view = replace(view, split_batch=True)

    groups = GroupSpec.parse(group)
    snapshot = SearchSnapshot(
        view=view,
        filters=context.filters,
        gap=context.gap,
        global_settings=GlobalSettings(
            page_size=int(page_size),
            sample_mode=SAMPLE_COUNT if sample_count is not None else SAMPLE_PERCENTAGE,
            sample_size=sample_count if sample_count is not None else sample,
            sample_seed=seed,
            words_around_hit=words_around_hit,
        ),
        viewed_results=viewed_results,
        results=ResultSettings(
            group_by=groups.group_by,
            group_by_advanced=groups.context_keys,
            case_sensitive=groups.case_sensitive,
            sort=sort,
            view_group=viewgroup,
            page=page,
        ),
    )
    if split_batch:
        _record_batch(config, snapshot)
        return

    if view.form == FORM_EXPLORE:
        snapshot = prepare_submission(snapshot, settings)
    elif viewed_results is None:
        has_pattern = compile_view(view, settings).pattern is not None
        snapshot = replace(snapshot, viewed_results=HITS if has_pattern else DOCS)

    codec = config.url_codec()
    try:
        encoded = codec.encode(snapshot)
    except SnapshotConfigurationError as e:
        error(str(e), hint="Pass --seed together with --sample or --sample-count")
        raise SystemExit(EXIT_USAGE_ERROR) from e

    show_view(view, settings.corpus, title="View")
    for annotation_id in insensitive_only(view, settings.corpus):
        warning(f"{annotation_id} cannot be searched case-sensitively; the backend ignores case")
    print_url(encoded.url)
    if encoded.truncated:
        warning(
            f"URL longer than {codec.max_url_length} characters; "
            "the pattern is not part of it"
        )

    if record:
        with get_history_session(config.history_db) as session:
            QueryHistory(session, settings, config.history_max_entries).add(snapshot, encoded.url)
        success("Added to query history")
    elif encoded.truncated:
        info("Use --record to keep the full search in the query history")
