"""List or clear the query history."""

from __future__ import annotations

import click
from rich.markup import escape

from corpus_query.cli import Context, pass_context
from corpus_query.history import QueryHistory, get_history_session
from corpus_query.utils.output import console, create_table, info, success


@click.command("history")
@click.option(
    "--limit", "-n", type=click.IntRange(min=1), default=20, help="Number of entries to show"
)
@click.option("--clear", is_flag=True, default=False, help="Delete all entries")
@pass_context
def cli(ctx: Context, limit: int, clear: bool) -> None:
    """Show recent searches, newest first.

    Searches are added with `encode-url --record`. `encode-url
    --split-batch` adds one entry per value of the split query.
    """
    config = ctx.require_config()
    with get_history_session(config.history_db) as session:
        history = QueryHistory(session, config.interface_settings(), config.history_max_entries)
        if clear:
            removed = history.clear()
            success(f"Removed {removed} history entries")
            return

        entries = history.entries(limit)
        if not entries:
            info("Query history is empty")
            return

        table = create_table("Query history")
        table.add_column("When")
        table.add_column("View")
        table.add_column("Pattern")
        table.add_column("Filter")
        table.add_column("URL", overflow="fold")
        for entry in entries:
            table.add_row(
                entry.created_at.strftime("%Y-%m-%d %H:%M"),
                entry.view or "",
                escape(entry.pattern or ""),
                escape(entry.filter or ""),
                escape(entry.url),
            )
        console.print(table)
