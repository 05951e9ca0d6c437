"""Parse metadata filter text into field clauses."""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import resources
from typing import Any

from lark import Lark, Token, Transformer, UnexpectedInput

from corpus_query.exceptions import FilterParseError


@dataclass
class FilterClause:
    """One ``field:value`` clause.

    Values are kept as written (quotes stripped, escapes intact); unescaping
    depends on the field's widget kind and is done by the filter codec.
    """

    field: str
    values: list[str] = field(default_factory=list)
    required: bool = False
    is_range: bool = False


class _Bare(str):
    """An unquoted value."""


@dataclass
class _Value:
    values: list[str]
    is_range: bool = False


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("corpus_query.filters").joinpath("filter.lark").read_text()


_parser = Lark(
    _load_grammar(),
    parser="earley",
    ambiguity="resolve",
)


class _FilterTransformer(Transformer):
    """Transform Lark parse tree into filter clauses."""

    def start(self, items: list[Any]) -> list[FilterClause]:
        return list(items)

    def clause(self, items: list[Any]) -> FilterClause:
        required = isinstance(items[0], Token) and items[0].type == "REQUIRED"
        field_name = str(items[1] if required else items[0])
        value: _Value = items[-1]
        return FilterClause(
            field=field_name,
            values=value.values,
            required=required,
            is_range=value.is_range,
        )

    def alternatives(self, items: list[Any]) -> _Value:
        # A bare OR between alternatives is the default operator anyway
        return _Value(values=[str(v) for v in items if not (isinstance(v, _Bare) and v == "OR")])

    def range(self, items: list[Any]) -> _Value:
        bounds = [str(v) for v in items if not (isinstance(v, Token) and v.type == "RANGE_TO")]
        return _Value(values=bounds, is_range=True)

    def single(self, items: list[Any]) -> _Value:
        return _Value(values=[str(items[0])])

    def quoted(self, items: list[Any]) -> str:
        return str(items[0])[1:-1]

    def bare(self, items: list[Any]) -> str:
        return _Bare(items[0])


_transformer = _FilterTransformer()


def parse_filter(text: str) -> list[FilterClause]:
    """Parse a metadata filter string into clauses.

    Args:
        text: The filter to parse.

    Returns:
        Clauses in the order written; blank input yields no clauses.

    Raises:
        FilterParseError: If the filter cannot be parsed.
    """
    text = text.strip()
    if not text:
        return []

    try:
        tree = _parser.parse(text)
        return _transformer.transform(tree)
    except UnexpectedInput as e:
        raise FilterParseError(text, str(e)) from e
