"""Submit searches: settle the snapshot, record its URL and start counting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from corpus_query.backend.totals import TotalsPoller
from corpus_query.exceptions import SnapshotConfigurationError
from corpus_query.history.store import QueryHistory
from corpus_query.state.compiler import prepare_submission, split_batch
from corpus_query.state.snapshot import to_search_parameters, validate_snapshot
from corpus_query.state.views import SearchSnapshot
from corpus_query.url.codec import EncodedUrl, UrlCodec
from corpus_query.url.navigation import NavigationRecorder

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submission:
    """Outcome of one submitted search."""

    snapshot: SearchSnapshot
    url: EncodedUrl
    params: dict[str, Any] | None
    pushed: bool
    generation: int | None = None


class SearchCoordinator:
    """Run submitted searches through URL recording, history and totals.

    Args:
        codec: Encodes snapshots into URLs.
        navigation: Navigation record receiving the URLs.
        history: Optional query history receiving every submission.
        poller: Optional totals poller started for every search with results.
    """

    def __init__(
        self,
        codec: UrlCodec,
        navigation: NavigationRecorder | None = None,
        history: QueryHistory | None = None,
        poller: TotalsPoller | None = None,
    ) -> None:
        self.codec = codec
        self.navigation = navigation or NavigationRecorder()
        self.history = history
        self.poller = poller

    def submit(self, snapshot: SearchSnapshot) -> Submission:
        """Submit a search.

        Raises:
            SnapshotConfigurationError: If the snapshot is misconfigured; no
                URL is recorded and no request is issued.
        """
        validate_snapshot(snapshot)
        snapshot = prepare_submission(snapshot, self.codec.settings)
        params = to_search_parameters(snapshot, self.codec.settings)
        encoded = self.codec.encode(snapshot)
        pushed = self.navigation.record(encoded, snapshot)

        if self.history is not None:
            self.history.add(snapshot, encoded.url)

        generation = None
        if self.poller is not None and params is not None:
            generation = self.poller.submit(snapshot.viewed_results, params)
        return Submission(snapshot, encoded, params, pushed, generation)

    def submit_batch(self, snapshot: SearchSnapshot) -> Submission:
        """Split a batch query, queue all but the first in history, submit the first.

        Raises:
            SnapshotConfigurationError: If the view cannot be split, or the
                split yields no query.
        """
        views = split_batch(snapshot.view, self.codec.settings)
        if not views:
            raise SnapshotConfigurationError("split_batch", "no value to split")

        snapshots = [replace(snapshot, view=view) for view in views]
        if self.history is not None:
            for queued in reversed(snapshots[1:]):
                prepared = prepare_submission(queued, self.codec.settings)
                self.history.add(prepared, self.codec.encode(prepared).url)
        log.info("Batch split into %d queries", len(snapshots))
        return self.submit(snapshots[0])
