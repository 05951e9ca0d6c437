"""Unit tests for the token pattern (CQL) parser."""

from __future__ import annotations

import pytest

from corpus_query.exceptions import PatternParseError
from corpus_query.pattern import (
    Attribute,
    BinaryOp,
    Negation,
    Repeats,
    Token,
    TokenPattern,
    parse_pattern,
    try_parse_pattern,
)
from corpus_query.pattern.parser import unquote

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TestTokens:
    def test_bare_word(self) -> None:
        result = parse_pattern('"cat"')
        assert result.tokens == [Token(expression=Attribute("word", "=", "cat"))]

    def test_bare_word_uses_default_annotation(self) -> None:
        result = parse_pattern('"cat"', default_annotation="lemma")
        assert result.tokens[0].expression == Attribute("lemma", "=", "cat")

    def test_bracketed_attribute(self) -> None:
        result = parse_pattern('[lemma="cat"]')
        assert result.tokens[0].expression == Attribute("lemma", "=", "cat")

    def test_single_quotes(self) -> None:
        result = parse_pattern("[lemma='cat']")
        assert result.tokens[0].expression == Attribute("lemma", "=", "cat")

    def test_match_all(self) -> None:
        result = parse_pattern("[]")
        assert result.tokens == [Token()]

    def test_sequence(self) -> None:
        result = parse_pattern('"the" [lemma="cat"] []')
        assert len(result.tokens) == 3
        assert result.tokens[0].expression == Attribute("word", "=", "the")
        assert result.tokens[1].expression == Attribute("lemma", "=", "cat")
        assert result.tokens[2].expression is None

    def test_adjacent_tokens_without_space(self) -> None:
        result = parse_pattern('[lemma="cat"][lemma="dog"]')
        assert [t.expression for t in result.tokens] == [
            Attribute("lemma", "=", "cat"),
            Attribute("lemma", "=", "dog"),
        ]

    def test_inequality(self) -> None:
        result = parse_pattern('[word!="the"]')
        assert result.tokens[0].expression == Attribute("word", "!=", "the")

    def test_blank_input_has_no_tokens(self) -> None:
        assert parse_pattern("   ") == TokenPattern(tokens=[])


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class TestExpressions:
    def test_and(self) -> None:
        result = parse_pattern('[lemma="cat" & pos="NOU.*"]')
        assert result.tokens[0].expression == BinaryOp(
            "&", Attribute("lemma", "=", "cat"), Attribute("pos", "=", "NOU.*")
        )

    def test_and_keyword(self) -> None:
        result = parse_pattern('[lemma="cat" AND pos="NOU"]')
        assert isinstance(result.tokens[0].expression, BinaryOp)
        assert result.tokens[0].expression.operator == "&"

    def test_or_keyword(self) -> None:
        result = parse_pattern('[word="a" OR word="b"]')
        assert result.tokens[0].expression.operator == "|"

    def test_and_binds_tighter_than_or(self) -> None:
        result = parse_pattern('[word="a" | word="b" & lemma="c"]')
        expr = result.tokens[0].expression
        assert expr == BinaryOp(
            "|",
            Attribute("word", "=", "a"),
            BinaryOp("&", Attribute("word", "=", "b"), Attribute("lemma", "=", "c")),
        )

    def test_chains_fold_left(self) -> None:
        result = parse_pattern('[word="a" | word="b" | word="c"]')
        expr = result.tokens[0].expression
        assert isinstance(expr.left, BinaryOp)
        assert expr.right == Attribute("word", "=", "c")

    def test_parentheses(self) -> None:
        result = parse_pattern('[(word="a" | word="b") & lemma="c"]')
        expr = result.tokens[0].expression
        assert expr.operator == "&"
        assert expr.left.operator == "|"

    def test_negation(self) -> None:
        result = parse_pattern('[!word="a"]')
        assert result.tokens[0].expression == Negation(Attribute("word", "=", "a"))

    def test_negated_group(self) -> None:
        result = parse_pattern('[!(word="a" & lemma="b")]')
        expr = result.tokens[0].expression
        assert isinstance(expr, Negation)
        assert isinstance(expr.operand, BinaryOp)


# ---------------------------------------------------------------------------
# Repetition, tags and within
# ---------------------------------------------------------------------------


class TestTokenModifiers:
    @pytest.mark.parametrize(
        ("text", "repeats"),
        [
            ("[]*", Repeats(0, None)),
            ("[]+", Repeats(1, None)),
            ("[]{2}", Repeats(2, 2)),
            ("[]{1,3}", Repeats(1, 3)),
            ("[]{2,}", Repeats(2, None)),
        ],
    )
    def test_repetition(self, text: str, repeats: Repeats) -> None:
        token = parse_pattern(text).tokens[0]
        assert token.repeats == repeats
        assert not token.is_plain

    def test_optional(self) -> None:
        token = parse_pattern('"very"?').tokens[0]
        assert token.optional is True
        assert token.repeats is None

    def test_inverted_range_is_error(self) -> None:
        with pytest.raises(PatternParseError):
            parse_pattern("[]{3,1}")

    def test_tags(self) -> None:
        result = parse_pattern('<s> "the" "end" </s>')
        assert result.tokens[0].leading_tag == "s"
        assert result.tokens[1].trailing_tag == "s"
        assert not result.tokens[0].is_plain

    def test_within(self) -> None:
        result = parse_pattern('"the" []{1,3} "end" within <s/>')
        assert result.within == "s"
        assert len(result.tokens) == 3

    def test_within_without_slash(self) -> None:
        assert parse_pattern('"cat" within <p>').within == "p"

    def test_plain_token(self) -> None:
        assert parse_pattern('[lemma="cat"]').tokens[0].is_plain


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


class TestQuoting:
    def test_escaped_quote(self) -> None:
        result = parse_pattern(r'"say \"hi\""')
        assert result.tokens[0].expression.value == 'say "hi"'

    def test_regex_escapes_are_kept(self) -> None:
        result = parse_pattern(r'"a\.b"')
        assert result.tokens[0].expression.value == r"a\.b"

    def test_unquote_only_unescapes_own_quote(self) -> None:
        assert unquote(r"'it\'s \"x\"'") == r"it's \"x\""


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    @pytest.mark.parametrize(
        "text",
        ['[word="a"', '"unterminated', '[word="a" &]', "cat", '[word=a]'],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(PatternParseError) as exc_info:
            parse_pattern(text)
        assert exc_info.value.text == text

    def test_try_parse_returns_none_on_error(self) -> None:
        assert try_parse_pattern('[word="a"') is None

    def test_try_parse_returns_none_for_blank(self) -> None:
        assert try_parse_pattern(None) is None
        assert try_parse_pattern("") is None
        assert try_parse_pattern("  ") is None

    def test_try_parse_returns_pattern(self) -> None:
        result = try_parse_pattern('"cat"')
        assert result is not None
        assert len(result.tokens) == 1
