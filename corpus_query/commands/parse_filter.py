"""Parse a metadata filter and show how its clauses are read."""

from __future__ import annotations

import click
from rich.markup import escape

from corpus_query.cli import Context, pass_context
from corpus_query.commands import EXIT_PARSE_ERROR
from corpus_query.commands._views import field_label
from corpus_query.exceptions import FilterParseError
from corpus_query.filters import encode_filters, parse_filter
from corpus_query.filters.codec import decode_clauses
from corpus_query.utils.output import console, create_table, error, print_fields


@click.command("parse-filter")
@click.argument("filter_text", metavar="FILTER")
@pass_context
def cli(ctx: Context, filter_text: str) -> None:
    """Parse a metadata filter (Lucene subset) and show its clauses.

    Clauses on fields that are not declared in the configuration are
    ignored, just as when the filter is read from a URL.

    Examples:

    \b
      corpus-query parse-filter '+title:("World" "War" "2") +year:[1900 TO 1950]'
    """
    corpus = ctx.require_config().corpus
    try:
        clauses = parse_filter(filter_text)
    except FilterParseError as e:
        error(str(e), hint='Use +field:"value", +field:("a" "b") or +field:[lo TO hi]')
        raise SystemExit(EXIT_PARSE_ERROR) from e

    decoded = decode_clauses(clauses, corpus.fields)

    table = create_table("Filters")
    table.add_column("Field")
    table.add_column("Kind")
    table.add_column("Values")
    for clause in clauses:
        value = decoded.get(clause.field)
        if value is None:
            kind, values = "[warning]ignored[/warning]", clause.values
        else:
            kind, values = value.ui_kind.value, value.values
        table.add_row(escape(field_label(corpus, clause.field)), kind, escape(" | ".join(values)))
    console.print(table)

    print_fields({"canonical": encode_filters(decoded.values())})
