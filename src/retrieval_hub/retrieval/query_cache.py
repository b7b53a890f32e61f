"""retrieval_hub.retrieval.query_cache

Bounded, time-limited cache of retrieval results.

Keys are any hashable value; the hub keys entries by the query text plus
every parameter that shapes the result.

Entries expire lazily: an entry older than the TTL is dropped when it is next
read. When the cache is full, inserting a new key evicts the entry with the
oldest timestamp.

Classes
-------
QueryCache
    Thread-safe TTL cache of :class:`~retrieval_hub.common.schemas.RetrievalResult` objects.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Hashable, Optional

from retrieval_hub.common import CacheEntry, RetrievalResult

logger = logging.getLogger(__name__)


class QueryCache:
    """Thread-safe TTL cache for retrieval results.

    Parameters
    ----------
    max_size : int
        Maximum number of entries. Must be positive.
    ttl_seconds : float
        Lifetime of an entry in seconds.
    clock : Callable[[], float], optional
        Time source. Defaults to :func:`time.monotonic`.
    """

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if int(max_size) <= 0:
            raise ValueError("'max_size' must be a positive integer.")
        self.max_size = int(max_size)
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.RLock()

    def get(self, key: Hashable) -> Optional[RetrievalResult]:
        """Return the cached result for ``key``, or ``None`` on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._entries[key]
                return None

            logger.debug("Cache hit for %r", key)
            return entry.result

    def set(self, key: Hashable, result: RetrievalResult) -> None:
        """Store ``result`` under ``key``, evicting the oldest entry if full."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest = min(self._entries, key=lambda k: self._entries[k].timestamp)
                del self._entries[oldest]

            self._entries[key] = CacheEntry(result=result, timestamp=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


__all__ = ["QueryCache"]
