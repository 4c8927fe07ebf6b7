"""In-memory cache store used to avoid repeated fan-out and LLM calls.

Thread-safe, LRU-bounded and easy to swap for Redis while keeping the same
interface.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from spontaneity.adapters.cache.base import CacheEntry, CacheStore

logger = logging.getLogger(__name__)


class InMemoryCacheStore(CacheStore):
    """Thread-safe, in-memory entry store with LRU eviction.

    Attributes:
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(self, max_entries: int | None = 1024) -> None:
        self._max_entries = max_entries
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryCacheStore(max_entries={self._max_entries}, "
            f"size={len(self._store)}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is not None:
                self._store.move_to_end(key)  # mark as recently used
            return entry

    def set(self, entry: CacheEntry) -> None:
        with self._lock:
            self._store[entry.key] = entry
            self._store.move_to_end(entry.key)
            self._evict_if_over_capacity_locked()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._store.pop(key, None) is not None:
                self._evictions += 1

    def sweep(self, now: float) -> int:
        with self._lock:
            stale = [key for key, entry in self._store.items() if not entry.is_fresh(now)]
            for key in stale:
                self._store.pop(key, None)
                self._evictions += 1
        if stale:
            logger.debug("cache.swept", extra={"removed": len(stale)})
        return len(stale)

    @property
    def evictions(self) -> int:
        return self._evictions

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1
