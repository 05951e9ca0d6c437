"""Search backend access: HTTP client and totals polling."""

from corpus_query.backend.client import BlackLabClient
from corpus_query.backend.totals import (
    QueryGeneration,
    Subcorpus,
    SubcorpusCounter,
    Totals,
    TotalsPoller,
    TotalsStatus,
    client_fetcher,
)

__all__ = [
    "BlackLabClient",
    "QueryGeneration",
    "Subcorpus",
    "SubcorpusCounter",
    "Totals",
    "TotalsPoller",
    "TotalsStatus",
    "client_fetcher",
]
