"""corpus-query: query grammars, view classification and URL state for corpus search."""

__version__ = "0.1.0"
