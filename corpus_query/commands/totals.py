"""Follow the running totals of a search on the backend."""

from __future__ import annotations

import asyncio

import click

from corpus_query.backend import (
    BlackLabClient,
    Subcorpus,
    SubcorpusCounter,
    Totals,
    TotalsPoller,
    TotalsStatus,
    client_fetcher,
)
from corpus_query.cli import Context, pass_context
from corpus_query.commands import EXIT_BACKEND_ERROR, EXIT_USAGE_ERROR
from corpus_query.config import Config
from corpus_query.exceptions import BackendError, SnapshotConfigurationError
from corpus_query.filters import encode_filters
from corpus_query.state.snapshot import to_search_parameters
from corpus_query.utils.output import console, error, info, success, warning


def _show_totals(totals: Totals) -> None:
    count = totals.hits if totals.hits is not None else totals.docs
    line = f"{count if count is not None else '?'} results, {totals.total_pages} pages"
    if totals.status is TotalsStatus.POLLING:
        info(f"{line} (still counting...)")
    elif totals.status is TotalsStatus.SETTLED:
        success(line)
    elif totals.status is TotalsStatus.ABORTED:
        warning(f"{line}; too busy, counting aborted")


def _show_subcorpus(subcorpus: Subcorpus | None) -> None:
    if subcorpus is not None:
        console.print(f"Sub-corpus: {subcorpus.documents} documents, {subcorpus.tokens} tokens")


async def _follow(
    config: Config, operation: str, params: dict, filter_text: str | None, subcorpus: bool
) -> Totals | None:
    client = BlackLabClient(config.backend_url, config.corpus_id or "", config.timeout)
    errors: list[BackendError] = []
    fetch = client_fetcher(client)
    try:
        poller = TotalsPoller(
            fetch,
            interval=config.poll_interval,
            on_update=_show_totals,
            on_error=errors.append,
        )
        poller.submit(operation, params)
        if subcorpus:
            counter = SubcorpusCounter(
                fetch,
                config.corpus,
                debounce=config.debounce,
                on_update=_show_subcorpus,
                on_error=errors.append,
            )
            counter.update(filter_text)
            await counter.task
        totals = await poller.wait()
    finally:
        client.close()
    for e in errors:
        error(str(e))
    return totals


@click.command("totals")
@click.argument("url")
@click.option(
    "--subcorpus",
    is_flag=True,
    default=False,
    help="Also show the size of the filtered sub-corpus",
)
@pass_context
def cli(ctx: Context, url: str, subcorpus: bool) -> None:
    """Count the results of the search a URL describes.

    Polls the backend until it has finished counting, or until it reports
    that it is too busy to continue.

    Examples:

    \b
      corpus-query totals '/corpus-frontend/x/search/hits?patt=%22cat%22'
    """
    config = ctx.require_config()
    if not config.corpus_id:
        error("No corpus configured", hint="Set 'corpus' in the [backend] section")
        raise SystemExit(EXIT_USAGE_ERROR)

    codec = config.url_codec()
    snapshot = codec.decode(url).to_snapshot()
    try:
        params = to_search_parameters(snapshot, codec.settings)
    except SnapshotConfigurationError as e:
        error(str(e))
        raise SystemExit(EXIT_USAGE_ERROR) from e
    if params is None:
        error("The URL shows no results", hint="Use a URL ending in /hits or /docs")
        raise SystemExit(EXIT_USAGE_ERROR)

    filter_text = encode_filters(snapshot.active_filters.values())
    totals = asyncio.run(_follow(config, snapshot.viewed_results, params, filter_text, subcorpus))
    if totals is None or totals.status is TotalsStatus.FAILED:
        raise SystemExit(EXIT_BACKEND_ERROR)
