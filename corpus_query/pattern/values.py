"""Translate per-annotation edit values to and from pattern regexes."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from corpus_query.corpus import ValueKind

CASE_SENSITIVE_PREFIX = "(?-i)"
CASE_PREFIXES: tuple[str, ...] = ("(?-i)", "(?c)")

# Words that mean "no constraint" for their token position
WILDCARD_WORDS: frozenset[str] = frozenset({"*", ".*", "[]"})

# Regex metacharacters escaped in user values. ``|`` is kept for alternation;
# ``*`` and ``?`` are wildcards handled separately.
_REGEX_SPECIAL_CHARS = "^$-\\.+()[]{}"
_REGEX_SPECIAL = re.compile(r"([\^$\-\\.+()\[\]{}])")
_REGEX_SPECIAL_WITH_PIPE = re.compile(r"([\^$\-\\.+()\[\]{}|*?])")


@dataclass(frozen=True)
class AnnotationValue:
    """One annotation's search value in a per-attribute edit view."""

    id: str
    value: str = ""
    case_sensitive: bool = False
    kind: ValueKind = ValueKind.TEXT

    @property
    def is_active(self) -> bool:
        return bool(self.value.strip())


def wildcard_to_regex(word: str) -> str:
    """Escape regex characters and translate ``*``/``?`` wildcards."""
    escaped = _REGEX_SPECIAL.sub(r"\\\1", word)
    return escaped.replace("*", ".*").replace("?", ".")


def regex_to_wildcard(regex: str) -> str:
    """Inverse of :func:`wildcard_to_regex`."""
    out: list[str] = []
    i = 0
    while i < len(regex):
        char = regex[i]
        nxt = regex[i + 1] if i + 1 < len(regex) else ""
        if char == "\\" and nxt:
            out.append(nxt if nxt in _REGEX_SPECIAL_CHARS else char + nxt)
            i += 2
        elif char == "." and nxt == "*":
            out.append("*")
            i += 2
        elif char == ".":
            out.append("?")
            i += 1
        else:
            out.append(char)
            i += 1
    return "".join(out)


def escape_regex(value: str) -> str:
    """Escape every regex metacharacter, including ``|`` and wildcards."""
    return _REGEX_SPECIAL_WITH_PIPE.sub(r"\\\1", value)


def unescape_regex(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def _encode_words(value: str) -> list[str | None]:
    return [None if word in WILDCARD_WORDS else wildcard_to_regex(word) for word in value.split()]


def _encode_exact(value: str) -> list[str | None]:
    return [escape_regex(value.strip())]


def _encode_raw(value: str) -> list[str | None]:
    return [value.strip()]


def _decode_words(values: list[str | None]) -> str:
    return " ".join("*" if v is None else regex_to_wildcard(v) for v in values)


def _decode_exact(values: list[str]) -> str:
    return " ".join(unescape_regex(v) for v in values)


def _decode_raw(values: list[str]) -> str:
    return " ".join(values)


_ENCODERS: dict[ValueKind, Callable[[str], list[str | None]]] = {
    ValueKind.TEXT: _encode_words,
    ValueKind.COMBOBOX: _encode_words,
    ValueKind.SELECT: _encode_exact,
    ValueKind.POS: _encode_raw,
}

_DECODERS: dict[ValueKind, Callable[[list[str | None]], str]] = {
    ValueKind.TEXT: _decode_words,
    ValueKind.COMBOBOX: _decode_words,
    ValueKind.SELECT: _decode_exact,
    ValueKind.POS: _decode_raw,
}


def encode_annotation_value(value: AnnotationValue) -> list[str | None]:
    """Split an edit value into one regex per token position.

    None marks a position without constraint. Case sensitivity is encoded
    as a prefix on every regex.
    """
    prefix = CASE_SENSITIVE_PREFIX if value.case_sensitive else ""
    return [
        None if regex is None else prefix + regex
        for regex in _ENCODERS[value.kind](value.value)
    ]


def encode_slot_value(value: AnnotationValue) -> str | None:
    """Translate a value that fills exactly one token position.

    Whitespace is kept as part of the regex instead of splitting the value
    into several tokens. Returns None for an unconstrained slot.
    """
    text = value.value.strip()
    if not text or text in WILDCARD_WORDS:
        return None
    if value.kind in (ValueKind.TEXT, ValueKind.COMBOBOX):
        regex = wildcard_to_regex(text)
    else:
        regex = _ENCODERS[value.kind](text)[0] or ""
    prefix = CASE_SENSITIVE_PREFIX if value.case_sensitive else ""
    return prefix + regex


def decode_annotation_value(
    annotation_id: str, regexes: list[str | None], kind: ValueKind = ValueKind.TEXT
) -> AnnotationValue:
    """Rebuild an edit value from the per-token regexes of one annotation.

    None marks an unconstrained position and becomes a ``*`` word; only the
    word-splitting kinds (``text``, ``combobox``) can hold one. The value is
    case-sensitive only if every regex carries a case prefix.

    Raises:
        ValueError: If an unconstrained position is given for a kind that
            holds a single token.
    """
    if kind not in (ValueKind.TEXT, ValueKind.COMBOBOX) and None in regexes:
        raise ValueError(f"{kind.value} values cannot skip a token")
    constrained = [r for r in regexes if r is not None]
    case_sensitive = bool(constrained) and all(r.startswith(CASE_PREFIXES) for r in constrained)
    if case_sensitive:
        regexes = [None if r is None else _strip_case(r) for r in regexes]
    return AnnotationValue(
        id=annotation_id,
        value=_DECODERS[kind](regexes),
        case_sensitive=case_sensitive,
        kind=kind,
    )


def _strip_case(regex: str) -> str:
    for prefix in CASE_PREFIXES:
        if regex.startswith(prefix):
            return regex[len(prefix) :]
    return regex
