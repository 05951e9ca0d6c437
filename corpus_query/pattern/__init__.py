"""Token pattern (CQL) grammar: parsing, generation and value translation."""

from corpus_query.pattern.ast_nodes import (
    Attribute,
    BinaryOp,
    Negation,
    Repeats,
    Token,
    TokenPattern,
)
from corpus_query.pattern.generator import annotations_to_pattern, pattern_to_string
from corpus_query.pattern.parser import parse_pattern, try_parse_pattern
from corpus_query.pattern.values import AnnotationValue

__all__ = [
    "AnnotationValue",
    "Attribute",
    "BinaryOp",
    "Negation",
    "Repeats",
    "Token",
    "TokenPattern",
    "annotations_to_pattern",
    "parse_pattern",
    "pattern_to_string",
    "try_parse_pattern",
]
