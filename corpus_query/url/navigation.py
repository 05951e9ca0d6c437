"""Record navigation entries, skipping pushes that would not change anything."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from corpus_query.state.serialize import snapshot_from_dict, snapshot_to_dict, stable_json
from corpus_query.state.views import SearchSnapshot
from corpus_query.url.codec import EncodedUrl, UrlCodec

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationEntry:
    """One navigation step: its URL and the snapshot that produced it."""

    url: str
    state: dict[str, Any] | None = None


def _pattern_key(state: dict[str, Any]) -> str:
    return stable_json({"view": state.get("view"), "gap": state.get("gap")})


class NavigationRecorder:
    """A back/forward navigation record with change suppression.

    Each pushed entry carries the plain-data snapshot it was encoded from,
    so going back restores the exact state even when the URL was truncated.
    """

    def __init__(self, current_url: str | None = None) -> None:
        self._entries: list[NavigationEntry] = []
        self._index = -1
        if current_url:
            self._entries.append(NavigationEntry(url=current_url))
            self._index = 0

    @property
    def entries(self) -> list[NavigationEntry]:
        return list(self._entries)

    @property
    def current(self) -> NavigationEntry | None:
        return self._entries[self._index] if self._index >= 0 else None

    def should_push(self, encoded: EncodedUrl, snapshot: SearchSnapshot) -> bool:
        """Decide whether ``encoded`` describes a different search than the current entry.

        URLs are compared without trailing slashes. Two equal truncated URLs
        may still differ in their dropped pattern, so for those the view and
        gap data of the snapshots are compared instead.
        """
        current = self.current
        if current is None:
            return True
        if current.url.rstrip("/") != encoded.url.rstrip("/"):
            return True
        if not encoded.truncated:
            return False
        if current.state is None:
            return True
        return _pattern_key(current.state) != _pattern_key(snapshot_to_dict(snapshot))

    def record(self, encoded: EncodedUrl, snapshot: SearchSnapshot) -> bool:
        """Push a new entry unless it would duplicate the current one.

        Returns:
            True when an entry was pushed.
        """
        if not self.should_push(encoded, snapshot):
            log.debug("Navigation to %s suppressed, state unchanged", encoded.url)
            return False
        del self._entries[self._index + 1 :]
        self._entries.append(NavigationEntry(url=encoded.url, state=snapshot_to_dict(snapshot)))
        self._index = len(self._entries) - 1
        log.debug("Navigation entry pushed: %s", encoded.url)
        return True

    def back(self) -> NavigationEntry | None:
        if self._index <= 0:
            return None
        self._index -= 1
        return self._entries[self._index]

    def forward(self) -> NavigationEntry | None:
        if self._index >= len(self._entries) - 1:
            return None
        self._index += 1
        return self._entries[self._index]


def restore_snapshot(entry: NavigationEntry, codec: UrlCodec) -> SearchSnapshot:
    """The snapshot of an entry: its recorded state, else decoded from its URL."""
    if entry.state is not None:
        return snapshot_from_dict(entry.state)
    return codec.decode(entry.url).to_snapshot()
