"""Utility modules for corpus-query."""
