"""Parse token pattern (CQL) text into an AST."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from importlib import resources
from typing import Any

from lark import Lark, Token as LarkToken, Transformer_NonRecursive, UnexpectedInput
from lark.exceptions import VisitError

from corpus_query.exceptions import PatternParseError
from corpus_query.pattern.ast_nodes import (
    Attribute,
    BinaryOp,
    Negation,
    Repeats,
    Token,
    TokenPattern,
)

log = logging.getLogger(__name__)

DEFAULT_ANNOTATION = "word"

_QUOTE_ESCAPE = re.compile(r"\\(.)", re.DOTALL)


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("corpus_query.pattern").joinpath("pattern.lark").read_text()


_parser = Lark(
    _load_grammar(),
    parser="earley",
    ambiguity="resolve",
)


@dataclass
class _Tag:
    name: str
    leading: bool


@dataclass
class _Marker:
    optional: bool = False
    repeats: Repeats | None = None


@dataclass
class _Within:
    name: str


def unquote(raw: str) -> str:
    """Strip surrounding quotes and undo escaping of the quote character.

    Other backslash sequences belong to the regex and are kept verbatim.
    """
    quote = raw[0]
    inner = raw[1:-1]
    return _QUOTE_ESCAPE.sub(
        lambda m: m.group(1) if m.group(1) == quote else m.group(0),
        inner,
    )


class _PatternTransformer(Transformer_NonRecursive):
    """Transform the Lark parse tree into AST data classes.

    Non-recursive so deeply nested user expressions cannot exhaust the stack.
    """

    def __init__(self, default_annotation: str) -> None:
        super().__init__()
        self.default_annotation = default_annotation

    def start(self, items: list[Any]) -> TokenPattern:
        return items[0]

    def pattern(self, items: list[Any]) -> TokenPattern:
        tokens = [item for item in items if isinstance(item, Token)]
        within = next((item.name for item in items if isinstance(item, _Within)), None)
        return TokenPattern(tokens=tokens, within=within)

    def within(self, items: list[Any]) -> _Within:
        return _Within(name=str(items[1]))

    def token(self, items: list[Any]) -> Token:
        token = next(item for item in items if isinstance(item, Token))
        for item in items:
            if isinstance(item, _Tag):
                if item.leading:
                    token.leading_tag = item.name
                else:
                    token.trailing_tag = item.name
            elif isinstance(item, _Marker):
                token.optional = item.optional
                token.repeats = item.repeats
        return token

    def leading_tag(self, items: list[Any]) -> _Tag:
        return _Tag(name=str(items[0]), leading=True)

    def trailing_tag(self, items: list[Any]) -> _Tag:
        return _Tag(name=str(items[0]), leading=False)

    def bracket_token(self, items: list[Any]) -> Token:
        return Token(expression=items[0] if items else None)

    def word_token(self, items: list[Any]) -> Token:
        attribute = Attribute(name=self.default_annotation, operator="=", value=items[0])
        return Token(expression=attribute)

    def optional_marker(self, items: list[Any]) -> _Marker:
        return _Marker(optional=True)

    def star_marker(self, items: list[Any]) -> _Marker:
        return _Marker(repeats=Repeats(min=0, max=None))

    def plus_marker(self, items: list[Any]) -> _Marker:
        return _Marker(repeats=Repeats(min=1, max=None))

    def exact_repeat(self, items: list[Any]) -> _Marker:
        count = int(items[0])
        return _Marker(repeats=Repeats(min=count, max=count))

    def range_repeat(self, items: list[Any]) -> _Marker:
        low = int(items[0])
        high = int(items[1]) if len(items) > 1 else None
        if high is not None and high < low:
            raise ValueError(f"repetition maximum {high} is smaller than minimum {low}")
        return _Marker(repeats=Repeats(min=low, max=high))

    def or_expr(self, items: list[Any]) -> BinaryOp:
        return self._fold(items, "|")

    def and_expr(self, items: list[Any]) -> BinaryOp:
        return self._fold(items, "&")

    def negation(self, items: list[Any]) -> Negation:
        return Negation(operand=items[-1])

    def attribute(self, items: list[Any]) -> Attribute:
        return Attribute(name=str(items[0]), operator=str(items[1]), value=items[2])

    def STRING(self, token: LarkToken) -> str:
        return unquote(str(token))

    @staticmethod
    def _fold(items: list[Any], operator: str) -> BinaryOp:
        # items alternate operand, operator token, operand...
        operands = [item for item in items if not isinstance(item, LarkToken)]
        result = operands[0]
        for operand in operands[1:]:
            result = BinaryOp(operator=operator, left=result, right=operand)
        return result


def parse_pattern(text: str, default_annotation: str = DEFAULT_ANNOTATION) -> TokenPattern:
    """Parse a token pattern string into an AST.

    Args:
        text: The token pattern to parse.
        default_annotation: Annotation a bare quoted word is matched against.

    Returns:
        A TokenPattern AST. Blank input yields a pattern without tokens.

    Raises:
        PatternParseError: If the pattern cannot be parsed.
    """
    text = text.strip()
    if not text:
        return TokenPattern(tokens=[])

    try:
        tree = _parser.parse(text)
        return _PatternTransformer(default_annotation).transform(tree)
    except UnexpectedInput as e:
        raise PatternParseError(text, str(e)) from e
    except VisitError as e:
        raise PatternParseError(text, str(e.orig_exc)) from e


def try_parse_pattern(
    text: str | None, default_annotation: str = DEFAULT_ANNOTATION
) -> TokenPattern | None:
    """Parse a token pattern, returning None when it is absent or unparseable.

    Callers treat None as "pattern not available as structured data"; the raw
    text stays usable in the expert view.
    """
    if not text:
        return None
    try:
        pattern = parse_pattern(text, default_annotation)
    except PatternParseError as e:
        log.debug("Token pattern not available as structured data: %s", e)
        return None
    return pattern if pattern.tokens else None
