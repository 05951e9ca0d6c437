"""AST data classes for parsed token patterns (CQL)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Attribute:
    """A single ``name="value"`` constraint on a token.

    Only ``=`` can be shown in the simplified views; ``!=`` is kept so the
    pattern stays valid for the expert view.
    """

    name: str
    operator: str
    value: str


@dataclass
class BinaryOp:
    """Two expressions combined with ``&`` (AND) or ``|`` (OR)."""

    operator: str
    left: Attribute | BinaryOp | Negation
    right: Attribute | BinaryOp | Negation


@dataclass
class Negation:
    """A negated expression: ``!expr``."""

    operand: Attribute | BinaryOp | Negation


Expression = Attribute | BinaryOp | Negation


@dataclass
class Repeats:
    """Repetition bounds of a token; ``max=None`` is unbounded."""

    min: int
    max: int | None


@dataclass
class Token:
    """One token position in a pattern.

    A token without an expression matches any word (``[]``).
    """

    expression: Expression | None = None
    optional: bool = False
    repeats: Repeats | None = None
    leading_tag: str | None = None
    trailing_tag: str | None = None

    @property
    def is_plain(self) -> bool:
        """True when the token carries no tags, repetition or optionality."""
        return (
            not self.optional
            and self.repeats is None
            and self.leading_tag is None
            and self.trailing_tag is None
        )


@dataclass
class TokenPattern:
    """Top-level pattern: a token sequence with an optional enclosing context."""

    tokens: list[Token] = field(default_factory=list)
    within: str | None = None
