"""Persisted list of past searches, newest first."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from corpus_query.filters import encode_filters
from corpus_query.history.models import HistoryBase, HistoryEntry
from corpus_query.state.compiler import compile_view
from corpus_query.state.serialize import snapshot_from_dict, snapshot_to_dict
from corpus_query.state.settings import InterfaceSettings
from corpus_query.state.views import SearchSnapshot

log = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


def get_history_engine(db_path: Path | None):
    """Create SQLAlchemy engine for the history database.

    Args:
        db_path: SQLite file, or None for an in-memory database.
    """
    if db_path is None:
        return create_engine("sqlite://")
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{db_path}", connect_args={"timeout": 30})


@contextmanager
def get_history_session(db_path: Path | None) -> Generator[Session, None, None]:
    """Open a session on the history database, creating tables on first use.

    The session is committed when the block exits normally.
    """
    engine = get_history_engine(db_path)
    HistoryBase.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class QueryHistory:
    """Query history on top of an open session.

    Adding a search that is already present (same URL and pattern) moves it
    to the top; only the newest ``max_entries`` are kept.
    """

    def __init__(
        self,
        session: Session,
        settings: InterfaceSettings,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self.session = session
        self.settings = settings
        self.max_entries = max_entries

    def add(self, snapshot: SearchSnapshot, url: str) -> HistoryEntry:
        pattern = compile_view(snapshot.view, self.settings).pattern if snapshot.view else None
        same_pattern = (
            HistoryEntry.pattern.is_(None) if pattern is None else HistoryEntry.pattern == pattern
        )
        self.session.execute(delete(HistoryEntry).where(HistoryEntry.url == url, same_pattern))
        entry = HistoryEntry(
            url=url,
            pattern=pattern,
            filter=encode_filters(snapshot.active_filters.values()),
            view=snapshot.mode,
            state=json.dumps(snapshot_to_dict(snapshot)),
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(entry)
        self.session.flush()
        self._trim()
        log.debug("History entry added: %s", url)
        return entry

    def _trim(self) -> None:
        count = self.session.scalar(select(func.count()).select_from(HistoryEntry)) or 0
        if count <= self.max_entries:
            return
        keep = select(HistoryEntry.id).order_by(HistoryEntry.id.desc()).limit(self.max_entries)
        self.session.execute(delete(HistoryEntry).where(HistoryEntry.id.not_in(keep)))

    def entries(self, limit: int | None = None) -> list[HistoryEntry]:
        query = select(HistoryEntry).order_by(HistoryEntry.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return list(self.session.scalars(query))

    def snapshot(self, entry: HistoryEntry) -> SearchSnapshot:
        return snapshot_from_dict(json.loads(entry.state))

    def clear(self) -> int:
        result = self.session.execute(delete(HistoryEntry))
        return result.rowcount or 0
