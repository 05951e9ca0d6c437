"""Decode a search page URL into the search it describes."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from corpus_query.cli import Context, pass_context
from corpus_query.commands import EXIT_USAGE_ERROR
from corpus_query.commands._views import field_label, show_view
from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.state.serialize import snapshot_to_dict
from corpus_query.state.snapshot import to_search_parameters
from corpus_query.utils.output import console, create_table, error, print_fields


@click.command("decode-url")
@click.argument("url")
@click.option(
    "--json", "as_json", is_flag=True, default=False, help="Print the decoded search as JSON"
)
@pass_context
def cli(ctx: Context, url: str, as_json: bool) -> None:
    """Show the search a URL describes and the backend request it makes.

    Every missing or invalid parameter falls back to its default, so any
    URL of the search page can be decoded.

    Examples:

    \b
      corpus-query decode-url '/corpus-frontend/x/search/hits?patt=%22cat%22'
    """
    config = ctx.require_config()
    codec = config.url_codec()
    decoded = codec.decode(url)
    snapshot = decoded.to_snapshot()

    if as_json:
        click.echo(json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True))
        return

    show_view(decoded.view, codec.settings.corpus, title="View")

    if decoded.filters:
        table = create_table("Filters")
        table.add_column("Field")
        table.add_column("Kind")
        table.add_column("Values")
        for value in decoded.filters.values():
            table.add_row(
                escape(field_label(codec.settings.corpus, value.id)),
                value.ui_kind.value,
                escape(" | ".join(value.values)),
            )
        console.print(table)

    try:
        params = to_search_parameters(snapshot, codec.settings)
    except SnapshotConfigurationError as e:
        error(str(e))
        raise SystemExit(EXIT_USAGE_ERROR) from e

    if params is None:
        print_fields({"results": "none shown"}, title="Backend request")
        return
    print_fields(
        {"operation": snapshot.viewed_results, **params},
        title="Backend request",
    )
