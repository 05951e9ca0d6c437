"""Generate canonical token pattern text from an AST or from edit values."""

from __future__ import annotations

from collections.abc import Iterable

from corpus_query.pattern.ast_nodes import (
    Attribute,
    BinaryOp,
    Expression,
    Negation,
    Repeats,
    Token,
    TokenPattern,
)
from corpus_query.pattern.values import (
    CASE_PREFIXES,
    AnnotationValue,
    encode_annotation_value,
)


def quote(value: str) -> str:
    """Quote a regex value, escaping embedded double quotes."""
    return '"' + value.replace('"', '\\"') + '"'


def _needs_parens(child: Expression, parent_operator: str | None) -> bool:
    if not isinstance(child, BinaryOp):
        return False
    return parent_operator is None or child.operator != parent_operator


def expression_to_string(expression: Expression) -> str:
    """Render an expression tree, walking it with an explicit stack."""
    out: list[str] = []
    stack: list[Expression | str] = [expression]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Attribute):
            out.append(f"{item.name}{item.operator}{quote(item.value)}")
        elif isinstance(item, Negation):
            if _needs_parens(item.operand, None):
                stack.extend([")", item.operand, "!("])
            else:
                stack.extend([item.operand, "!"])
        else:
            parts: list[Expression | str] = []
            for child in (item.left, item.right):
                if parts:
                    parts.append(f" {item.operator} ")
                if _needs_parens(child, item.operator):
                    parts.extend(["(", child, ")"])
                else:
                    parts.append(child)
            stack.extend(reversed(parts))
    return "".join(out)


def _repeat_marker(token: Token) -> str:
    if token.optional:
        return "?"
    repeats: Repeats | None = token.repeats
    if repeats is None:
        return ""
    if repeats.max is None:
        if repeats.min == 0:
            return "*"
        if repeats.min == 1:
            return "+"
        return f"{{{repeats.min},}}"
    if repeats.min == repeats.max:
        return f"{{{repeats.min}}}"
    return f"{{{repeats.min},{repeats.max}}}"


def _is_bare_word(token: Token, primary_annotation: str | None) -> bool:
    expression = token.expression
    return (
        primary_annotation is not None
        and isinstance(expression, Attribute)
        and expression.name == primary_annotation
        and expression.operator == "="
        and not expression.value.startswith(CASE_PREFIXES)
    )


def token_to_string(token: Token, primary_annotation: str | None = None) -> str:
    if token.expression is None:
        body = "[]"
    elif _is_bare_word(token, primary_annotation):
        body = quote(token.expression.value)  # type: ignore[union-attr]
    else:
        body = f"[{expression_to_string(token.expression)}]"

    text = body + _repeat_marker(token)
    if token.leading_tag:
        text = f"<{token.leading_tag}>{text}"
    if token.trailing_tag:
        text = f"{text}</{token.trailing_tag}>"
    return text


def pattern_to_string(pattern: TokenPattern, primary_annotation: str | None = None) -> str:
    """Render a TokenPattern as canonical pattern text.

    Args:
        pattern: The pattern AST.
        primary_annotation: When given, a case-insensitive token holding only
            this annotation is written as a bare quoted word.
    """
    parts: list[str] = []
    previous_bare = False
    for token in pattern.tokens:
        bare = _is_bare_word(token, primary_annotation)
        if parts and (bare or previous_bare):
            parts.append(" ")
        parts.append(token_to_string(token, primary_annotation))
        previous_bare = bare

    text = "".join(parts)
    if text and pattern.within:
        text += f" within <{pattern.within}/>"
    return text


def _and_chain(attributes: list[Attribute]) -> Expression | None:
    if not attributes:
        return None
    result: Expression = attributes[0]
    for attribute in attributes[1:]:
        result = BinaryOp(operator="&", left=result, right=attribute)
    return result


def annotations_to_tokens(values: Iterable[AnnotationValue]) -> list[Token]:
    """Lay out edit values as token positions.

    The i-th word of every value constrains the i-th token. Values with fewer
    words leave the remaining positions unconstrained.
    """
    positions: list[list[Attribute]] = []
    for value in values:
        if not value.is_active:
            continue
        for i, regex in enumerate(encode_annotation_value(value)):
            while len(positions) <= i:
                positions.append([])
            if regex is not None:
                positions[i].append(Attribute(name=value.id, operator="=", value=regex))
    return [Token(expression=_and_chain(attributes)) for attributes in positions]


def annotations_to_pattern(
    values: Iterable[AnnotationValue],
    within: str | None = None,
    primary_annotation: str | None = None,
) -> str | None:
    """Compile edit values into pattern text, or None when nothing is set."""
    tokens = annotations_to_tokens(values)
    if not tokens:
        return None
    return pattern_to_string(TokenPattern(tokens=tokens, within=within), primary_annotation)
