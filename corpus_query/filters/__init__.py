"""Metadata filter grammar: parsing and kind-aware encoding."""

from corpus_query.filters.codec import (
    FilterSet,
    FilterValue,
    decode_filters,
    encode_filters,
    escape_lucene,
    unescape_lucene,
)
from corpus_query.filters.parser import FilterClause, parse_filter

__all__ = [
    "FilterClause",
    "FilterSet",
    "FilterValue",
    "decode_filters",
    "encode_filters",
    "escape_lucene",
    "parse_filter",
    "unescape_lucene",
]
