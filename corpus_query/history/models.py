"""SQLAlchemy ORM models for the query history database."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class HistoryBase(DeclarativeBase):
    """Base class for history ORM models."""

    pass


class HistoryEntry(HistoryBase):
    """One past search: where it lives and how to restore it."""

    __tablename__ = "history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    pattern: Mapped[str | None] = mapped_column(Text)
    filter: Mapped[str | None] = mapped_column(Text)
    view: Mapped[str | None] = mapped_column(String(16))
    state: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("ix_history_created_at", "created_at"),)

    def __repr__(self) -> str:
        return f"<HistoryEntry(id={self.id}, view={self.view!r}, pattern={self.pattern!r})>"
