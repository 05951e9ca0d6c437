"""Show which view represents a query."""

from __future__ import annotations

import click

from corpus_query.cli import Context, pass_context
from corpus_query.commands._views import (
    classify_options,
    filter_option,
    gap_option,
    group_option,
    show_view,
    view_option,
)
from corpus_query.state.compiler import compile_view
from corpus_query.utils.output import print_fields, verbose


@click.command("classify")
@click.argument("pattern", required=False)
@filter_option
@group_option
@view_option
@gap_option
@pass_context
def cli(
    ctx: Context,
    pattern: str | None,
    filter_text: str | None,
    group: str | None,
    viewed_results: str | None,
    gap: str | None,
) -> None:
    """Pick the simplest view that shows a query without losing anything.

    Examples:

    \b
      corpus-query classify '"cat"'
      corpus-query classify '[lemma="cat"][lemma="dog"]'
      corpus-query classify '[]' --group hit:lemma --view hits
      corpus-query classify --group genre --view docs
    """
    settings = ctx.require_config().interface_settings()
    context, view = classify_options(
        settings,
        pattern=pattern,
        filter_text=filter_text,
        group=group,
        viewed_results=viewed_results,
        gap=gap,
    )
    if pattern and context.parsed is None:
        verbose("Pattern does not parse; only the expert view can hold it")

    show_view(view, settings.corpus, title="View")

    compiled = compile_view(view, settings)
    print_fields(
        {
            "pattern": compiled.pattern,
            "group": ",".join(compiled.group_by) or None,
            "results": compiled.viewed_results,
        },
        title="Compiled",
    )
