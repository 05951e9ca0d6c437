"""Encode and decode metadata filters, dispatching on the field's widget kind.

Free-text widgets (``text``, ``combobox``) let users type arbitrary values, so
Lucene-reserved characters are backslash-escaped on values without
whitespace. Values with whitespace, and the values of enumerated widgets, are
quoted with only ``"`` and ``\\`` escaped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from corpus_query.corpus import MetadataFieldDef, UiKind
from corpus_query.exceptions import FilterParseError
from corpus_query.filters.parser import FilterClause, parse_filter

log = logging.getLogger(__name__)

_LUCENE_SPECIAL = re.compile(r'([+\-&|!(){}\[\]^"~*?:\\/])')
_LUCENE_ESCAPE = re.compile(r"\\(.)", re.DOTALL)
_QUOTE_SPECIAL = re.compile(r'(["\\])')
_QUOTE_ESCAPE = re.compile(r'\\(["\\])')
_WHITESPACE = re.compile(r"\s")

_OPEN_BOUND = "*"


@dataclass(frozen=True)
class FilterValue:
    """The active value(s) of one metadata filter."""

    id: str
    ui_kind: UiKind
    values: tuple[str, ...] = ()

    @property
    def is_active(self) -> bool:
        return any(v.strip() for v in self.values)


FilterSet = dict[str, FilterValue]


def escape_lucene(value: str) -> str:
    return _LUCENE_SPECIAL.sub(r"\\\1", value)


def unescape_lucene(value: str) -> str:
    return _LUCENE_ESCAPE.sub(r"\1", value)


def _quoted(value: str) -> str:
    return f'"{value}"'


def _quote_escaped(value: str) -> str:
    return _QUOTE_SPECIAL.sub(r"\\\1", value)


def _quote_unescaped(value: str) -> str:
    return _QUOTE_ESCAPE.sub(r"\1", value)


def _clause(field_id: str, quoted_values: list[str]) -> str:
    if len(quoted_values) == 1:
        return f"+{field_id}:{quoted_values[0]}"
    return f"+{field_id}:({' '.join(quoted_values)})"


# ---------------------------------------------------------------------------
# Encoders: FilterValue -> clause text (None when nothing to filter on)
# ---------------------------------------------------------------------------


def _encode_text(value: FilterValue) -> str | None:
    words = " ".join(value.values).split()
    if not words:
        return None
    return _clause(value.id, [_quoted(escape_lucene(w)) for w in words])


def _encode_combobox(value: FilterValue) -> str | None:
    values = [v for v in value.values if v.strip()]
    if not values:
        return None
    return _clause(
        value.id,
        [_quoted(_quote_escaped(v) if _WHITESPACE.search(v) else escape_lucene(v)) for v in values],
    )


def _encode_multiselect(value: FilterValue) -> str | None:
    values = [v for v in value.values if v]
    if not values:
        return None
    return _clause(value.id, [_quoted(_quote_escaped(v)) for v in values])


def _encode_range(value: FilterValue) -> str | None:
    low = value.values[0] if len(value.values) > 0 else ""
    high = value.values[1] if len(value.values) > 1 else ""
    if not low and not high:
        return None
    return f"+{value.id}:[{low or _OPEN_BOUND} TO {high or _OPEN_BOUND}]"


# ---------------------------------------------------------------------------
# Decoders: parsed clause values -> FilterValue.values
# ---------------------------------------------------------------------------


def _unescape(values: list[str]) -> list[str]:
    return [_quote_unescaped(v) if _WHITESPACE.search(v) else unescape_lucene(v) for v in values]


def _decode_text(values: list[str]) -> tuple[str, ...]:
    return (" ".join(_unescape(values)),)


def _decode_combobox(values: list[str]) -> tuple[str, ...]:
    return tuple(_unescape(values))


def _decode_quoted(values: list[str]) -> tuple[str, ...]:
    return tuple(_quote_unescaped(v) for v in values)


def _decode_range(values: list[str]) -> tuple[str, ...]:
    return tuple("" if v == _OPEN_BOUND else v for v in values)


_ENCODERS: dict[UiKind, Callable[[FilterValue], str | None]] = {
    UiKind.TEXT: _encode_text,
    UiKind.COMBOBOX: _encode_combobox,
    UiKind.SELECT: _encode_multiselect,
    UiKind.CHECKBOX: _encode_multiselect,
    UiKind.RADIO: _encode_multiselect,
    UiKind.RANGE: _encode_range,
}

_DECODERS: dict[UiKind, Callable[[list[str]], tuple[str, ...]]] = {
    UiKind.TEXT: _decode_text,
    UiKind.COMBOBOX: _decode_combobox,
    UiKind.SELECT: _decode_quoted,
    UiKind.CHECKBOX: _decode_quoted,
    UiKind.RADIO: _decode_quoted,
    UiKind.RANGE: _decode_range,
}


def encode_filters(filters: Iterable[FilterValue]) -> str | None:
    """Generate the filter string for the active filters.

    Every clause is required (``+``); clauses are joined with a single space.
    Returns None when no filter is active.
    """
    clauses = [_ENCODERS[f.ui_kind](f) for f in filters]
    text = " ".join(c for c in clauses if c)
    return text or None


def decode_clauses(
    clauses: Iterable[FilterClause], fields: Mapping[str, MetadataFieldDef]
) -> FilterSet:
    """Turn parsed clauses into filter values, dropping undeclared fields."""
    result: FilterSet = {}
    for clause in clauses:
        definition = fields.get(clause.field)
        if definition is None:
            log.debug("Ignoring filter on unknown metadata field %s", clause.field)
            continue
        if clause.is_range != (definition.ui_kind is UiKind.RANGE):
            log.debug("Ignoring filter on %s: value shape does not fit its widget", clause.field)
            continue
        result[clause.field] = FilterValue(
            id=clause.field,
            ui_kind=definition.ui_kind,
            values=_DECODERS[definition.ui_kind](clause.values),
        )
    return result


def decode_filters(text: str | None, fields: Mapping[str, MetadataFieldDef]) -> FilterSet:
    """Parse and decode a filter string; unparseable text yields no filters."""
    if not text:
        return {}
    try:
        clauses = parse_filter(text)
    except FilterParseError as e:
        log.debug("Cannot decode filter query: %s", e)
        return {}
    return decode_clauses(clauses, fields)
