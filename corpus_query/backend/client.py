"""HTTP client for the BlackLab Server search web service.

Handles JSON requests to the ``hits`` and ``docs`` endpoints of a corpus and
translates the service's error envelope into :class:`BackendError`.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from corpus_query import __version__
from corpus_query.exceptions import BackendBusyError, BackendError

logger = logging.getLogger(__name__)

_USER_AGENT = f"corpus-query/{__version__}"
_REQUEST_TIMEOUT = 30
_MAX_RETRIES = 3
_BACKOFF_BASE = 1.0  # seconds

SERVER_BUSY = "SERVER_BUSY"
WEBSERVICE_ERROR = "WEBSERVICE_ERROR"
OPERATIONS: tuple[str, ...] = ("hits", "docs")


class BlackLabClient:
    """HTTP client for one corpus on a BlackLab Server.

    Args:
        base_url: Web service root, e.g. ``http://host/blacklab-server``.
        corpus_id: Corpus to search.
        timeout: Seconds before a request is given up.
    """

    def __init__(self, base_url: str, corpus_id: str, timeout: float = _REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.corpus_id = corpus_id
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT, "Accept": "application/json"})

    def close(self) -> None:
        self._session.close()

    def _request(self, url: str, params: dict[str, Any]) -> requests.Response:
        """GET with retry and backoff on connection failures and HTTP 429.

        Raises:
            BackendError: If the service cannot be reached after retrying.
        """
        for attempt in range(_MAX_RETRIES):
            try:
                resp = self._session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt == _MAX_RETRIES - 1:
                    raise BackendError(
                        WEBSERVICE_ERROR,
                        f"Request to {url} failed after {_MAX_RETRIES} attempts: {e}",
                    ) from e
                wait = _BACKOFF_BASE * (2**attempt)
                logger.warning("Request failed, retrying in %.1fs: %s", wait, e)
                time.sleep(wait)
                continue

            if resp.status_code == 429 and attempt < _MAX_RETRIES - 1:
                wait = _BACKOFF_BASE * (2**attempt)
                logger.warning("Rate limited (HTTP 429), waiting %.1fs...", wait)
                time.sleep(wait)
                continue

            return resp

        raise BackendError(
            WEBSERVICE_ERROR, f"Request to {url} failed after {_MAX_RETRIES} attempts"
        )

    def search(self, operation: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run a ``hits`` or ``docs`` request and return the decoded JSON.

        Parameters that are None are left out of the request.

        Raises:
            BackendBusyError: If the service reports ``SERVER_BUSY``.
            BackendError: For any other failure.
        """
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")
        url = f"{self.base_url}/{self.corpus_id}/{operation}"
        query = {k: v for k, v in params.items() if v is not None}
        resp = self._request(url, query)

        try:
            data = resp.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error = data["error"]
            code = str(error.get("code", WEBSERVICE_ERROR))
            message = str(error.get("message", ""))
            if code == SERVER_BUSY:
                raise BackendBusyError(message or "Server is too busy")
            raise BackendError(code, message)

        if not resp.ok:
            raise BackendError(WEBSERVICE_ERROR, f"HTTP {resp.status_code} from {url}")
        if not isinstance(data, dict):
            raise BackendError(WEBSERVICE_ERROR, f"Response from {url} is not a JSON object")
        return data
