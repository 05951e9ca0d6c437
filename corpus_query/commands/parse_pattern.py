"""Parse a token pattern and show its structure."""

from __future__ import annotations

import click
from rich.markup import escape

from corpus_query.cli import Context, pass_context
from corpus_query.commands import EXIT_PARSE_ERROR
from corpus_query.exceptions import PatternParseError
from corpus_query.pattern import Token, parse_pattern, pattern_to_string
from corpus_query.pattern.generator import expression_to_string
from corpus_query.utils.output import console, create_table, error, print_fields


def _repetition(token: Token) -> str:
    if token.optional:
        return "optional"
    if token.repeats is None:
        return ""
    upper = "∞" if token.repeats.max is None else str(token.repeats.max)
    return f"{token.repeats.min}..{upper}"


def _tags(token: Token) -> str:
    tags = []
    if token.leading_tag:
        tags.append(f"<{token.leading_tag}>")
    if token.trailing_tag:
        tags.append(f"</{token.trailing_tag}>")
    return " ".join(tags)


@click.command("parse-pattern")
@click.argument("pattern")
@click.option(
    "--annotation",
    "-a",
    default=None,
    help="Annotation that bare quoted words match (default: primary annotation)",
)
@pass_context
def cli(ctx: Context, pattern: str, annotation: str | None) -> None:
    """Parse a token pattern (CQL) and show its tokens.

    Examples:

    \b
      corpus-query parse-pattern '[lemma="cat" & pos="NOU.*"] "sat"'
      corpus-query parse-pattern '"the" []{1,3} "end" within <s/>'
    """
    settings = ctx.require_config().interface_settings()
    try:
        parsed = parse_pattern(pattern, annotation or settings.primary)
    except PatternParseError as e:
        error(str(e), hint="Quote values with \" and wrap attribute tests in [ ]")
        raise SystemExit(EXIT_PARSE_ERROR) from e

    table = create_table("Tokens")
    table.add_column("#", justify="right")
    table.add_column("Constraint")
    table.add_column("Repeat")
    table.add_column("Tags")
    for i, token in enumerate(parsed.tokens, start=1):
        constraint = expression_to_string(token.expression) if token.expression else "any token"
        table.add_row(str(i), escape(constraint), _repetition(token), escape(_tags(token)))
    console.print(table)

    print_fields(
        {
            "within": parsed.within,
            "canonical": pattern_to_string(parsed, settings.primary),
        }
    )
