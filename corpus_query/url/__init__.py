"""Page URL encoding of search snapshots and navigation recording."""

from corpus_query.url.codec import DecodedState, EncodedUrl, UrlCodec
from corpus_query.url.navigation import NavigationEntry, NavigationRecorder, restore_snapshot

__all__ = [
    "DecodedState",
    "EncodedUrl",
    "NavigationEntry",
    "NavigationRecorder",
    "UrlCodec",
    "restore_snapshot",
]
