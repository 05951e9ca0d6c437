"""Persisted query history."""

from corpus_query.history.models import HistoryBase, HistoryEntry
from corpus_query.history.store import QueryHistory, get_history_session

__all__ = ["HistoryBase", "HistoryEntry", "QueryHistory", "get_history_session"]
