"""Poll running hit/document totals and the size of the filtered sub-corpus.

Both pollers follow the same rule: only the most recent request may update
what is displayed. Older work is cancelled where possible, and its results
are dropped when they arrive anyway.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from corpus_query.backend.client import BlackLabClient
from corpus_query.corpus import CorpusInfo
from corpus_query.exceptions import BackendBusyError, BackendError

log = logging.getLogger(__name__)

POLL_INTERVAL = 1.0
DEBOUNCE = 1.0

Fetch = Callable[[str, dict[str, Any]], Awaitable[dict[str, Any]]]


def client_fetcher(client: BlackLabClient) -> Fetch:
    """Run the blocking client off the event loop."""

    async def fetch(operation: str, params: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(client.search, operation, params)

    return fetch


class TotalsStatus(str, enum.Enum):
    IDLE = "idle"
    POLLING = "polling"
    SETTLED = "settled"
    SUPERSEDED = "superseded"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class Totals:
    """Counts for one search as reported so far.

    Attributes:
        generation: Query generation the counts belong to.
        status: Polling state after this update.
        hits: Total hits counted so far (hits searches only).
        docs: Total documents counted so far.
        retrieved: Hits (or docs) retrieved so far; paging is based on it.
        page_size: Page size of the search.
        still_counting: Whether the backend is still counting.
        message: Reason when polling was aborted or failed.
    """

    generation: int
    status: TotalsStatus
    hits: int | None = None
    docs: int | None = None
    retrieved: int = 0
    page_size: int = 50
    still_counting: bool = False
    message: str | None = None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.retrieved / self.page_size) if self.page_size else 0


class QueryGeneration:
    """Monotonic counter identifying the most recent submission."""

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def is_current(self, generation: int) -> bool:
        return generation == self._value


def totals_from_response(
    generation: int, operation: str, response: dict[str, Any], page_size: int
) -> Totals:
    summary = response.get("summary") or {}
    still_counting = bool(summary.get("stillCounting", False))
    if operation == "hits":
        retrieved = summary.get("numberOfHitsRetrieved", summary.get("numberOfHits", 0))
    else:
        retrieved = summary.get("numberOfDocsRetrieved", summary.get("numberOfDocs", 0))
    return Totals(
        generation=generation,
        status=TotalsStatus.POLLING if still_counting else TotalsStatus.SETTLED,
        hits=summary.get("numberOfHits"),
        docs=summary.get("numberOfDocs"),
        retrieved=int(retrieved or 0),
        page_size=page_size,
        still_counting=still_counting,
    )


class TotalsPoller:
    """Keep the displayed totals of the latest search up to date.

    Every :meth:`submit` starts a new query generation. The polling task
    captures its generation and drops any response once a newer submission
    exists. While the backend reports ``stillCounting`` the same count-only
    request is repeated every ``interval`` seconds.

    Args:
        fetch: Coroutine function performing a backend request.
        interval: Seconds between requests while counting.
        on_update: Called with every totals update of the current generation.
        on_error: Called with the error that ended polling.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        interval: float = POLL_INTERVAL,
        on_update: Callable[[Totals], None] | None = None,
        on_error: Callable[[BackendError], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self.interval = interval
        self.on_update = on_update
        self.on_error = on_error
        self.generation = QueryGeneration()
        self.status = TotalsStatus.IDLE
        self._task: asyncio.Task[Totals] | None = None

    @property
    def task(self) -> asyncio.Task[Totals] | None:
        return self._task

    def submit(self, operation: str, params: dict[str, Any]) -> int:
        """Start polling totals for a search; must run inside an event loop.

        Returns:
            The generation of this submission.
        """
        self.stop()
        generation = self.generation.advance()
        request = {**params, "number": 0}
        page_size = int(params.get("number") or 50)
        self.status = TotalsStatus.POLLING
        self._task = asyncio.get_running_loop().create_task(
            self._poll(generation, operation, request, page_size)
        )
        return generation

    def stop(self) -> None:
        """Cancel the running task; stale responses are dropped regardless."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> Totals | None:
        """Wait for the current polling task to finish."""
        if self._task is None:
            return None
        try:
            return await self._task
        except asyncio.CancelledError:
            return None

    def _superseded(self, generation: int) -> Totals:
        log.debug("Dropping totals of superseded query %d", generation)
        return Totals(generation=generation, status=TotalsStatus.SUPERSEDED)

    def _finish(self, totals: Totals) -> Totals:
        self.status = totals.status
        if self.on_update is not None:
            self.on_update(totals)
        return totals

    async def _poll(
        self, generation: int, operation: str, request: dict[str, Any], page_size: int
    ) -> Totals:
        while True:
            try:
                response = await self._fetch(operation, request)
            except BackendBusyError as e:
                if not self.generation.is_current(generation):
                    return self._superseded(generation)
                log.info("Too busy; counting aborted for query %d", generation)
                return self._finish(
                    Totals(
                        generation=generation,
                        status=TotalsStatus.ABORTED,
                        page_size=page_size,
                        message=e.message,
                    )
                )
            except BackendError as e:
                if not self.generation.is_current(generation):
                    return self._superseded(generation)
                log.warning("Counting failed for query %d: %s", generation, e)
                if self.on_error is not None:
                    self.on_error(e)
                return self._finish(
                    Totals(
                        generation=generation,
                        status=TotalsStatus.FAILED,
                        page_size=page_size,
                        message=str(e),
                    )
                )

            if not self.generation.is_current(generation):
                return self._superseded(generation)

            totals = totals_from_response(generation, operation, response, page_size)
            self._finish(totals)
            if not totals.still_counting:
                return totals

            await asyncio.sleep(self.interval)
            if not self.generation.is_current(generation):
                return self._superseded(generation)


@dataclass(frozen=True)
class Subcorpus:
    """Size of the part of the corpus matching the current filters."""

    documents: int
    tokens: int


class SubcorpusCounter:
    """Debounced sub-corpus size lookup.

    Each :meth:`update` clears the known size, cancels a pending lookup and
    schedules a new one after ``debounce`` seconds. Without a filter the
    corpus-wide counts are used and no request is made.
    """

    def __init__(
        self,
        fetch: Fetch,
        corpus: CorpusInfo,
        *,
        debounce: float = DEBOUNCE,
        on_update: Callable[[Subcorpus | None], None] | None = None,
        on_error: Callable[[BackendError], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self.corpus = corpus
        self.debounce = debounce
        self.on_update = on_update
        self.on_error = on_error
        self.value: Subcorpus | None = None
        self._task: asyncio.Task[Subcorpus | None] | None = None

    @property
    def task(self) -> asyncio.Task[Subcorpus | None] | None:
        return self._task

    def update(self, filter_text: str | None) -> None:
        """Schedule a lookup for a new filter; must run inside an event loop."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._set(None)
        self._task = asyncio.get_running_loop().create_task(self._lookup(filter_text))

    def _set(self, value: Subcorpus | None) -> None:
        self.value = value
        if self.on_update is not None:
            self.on_update(value)

    async def _lookup(self, filter_text: str | None) -> Subcorpus | None:
        await asyncio.sleep(self.debounce)
        if not filter_text:
            result = Subcorpus(self.corpus.document_count, self.corpus.token_count)
            self._set(result)
            return result

        params = {
            "filter": filter_text,
            "first": 0,
            "number": 0,
            "includetokencount": "true",
            "waitfortotal": "true",
        }
        try:
            response = await self._fetch("docs", params)
        except BackendError as e:
            log.warning("Sub-corpus size lookup failed: %s", e)
            if self.on_error is not None:
                self.on_error(e)
            return None

        summary = response.get("summary") or {}
        result = Subcorpus(
            documents=int(summary.get("numberOfDocs", 0)),
            tokens=int(summary.get("tokensInMatchingDocuments", 0)),
        )
        self._set(result)
        return result
