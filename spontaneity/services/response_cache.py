"""Short-lived cache of composed responses keyed by request fingerprint.

Concurrent misses on the same fingerprint each compute their own payload;
the last store wins.
"""

from __future__ import annotations

import logging
import threading
import time
from hashlib import sha256
from typing import Any, Awaitable, Callable

from spontaneity.adapters.cache.base import CacheEntry, CacheStore

logger = logging.getLogger(__name__)

Payload = dict[str, Any]


def _coordinate(value: float) -> str:
    text = f"{value:.3f}"
    # -0.0001 rounds to "-0.000", which must share a key with "0.000"
    return "0.000" if text == "-0.000" else text


def build_fingerprint(tenant_id: str, lat: float, lng: float, mood: str) -> str:
    """Build a stable cache key for one tenant, location and mood.

    Coordinates are rounded to 3 decimal places (about 110 m) and the mood is
    trimmed and lowercased, so nearby requests share an entry.

    Returns:
        Hex-encoded SHA-256 digest string.
    """
    raw = f"{tenant_id}:{_coordinate(lat)}:{_coordinate(lng)}:{mood.strip().lower()}"
    return sha256(raw.encode()).hexdigest()


class ResponseCache:
    """TTL lookups over a ``CacheStore`` with hit and miss counters."""

    def __init__(self, store: CacheStore, *, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, fingerprint: str) -> Payload | None:
        """Return the cached payload if it is still fresh."""
        entry = self._store.get(fingerprint)
        if entry is None:
            self._record_miss(fingerprint, "not_found")
            return None
        if not entry.is_fresh(self._clock()):
            self._store.delete(fingerprint)
            self._record_miss(fingerprint, "expired")
            return None

        with self._lock:
            self._hits += 1
        logger.debug("cache.hit", extra={"cache_key": fingerprint[:16]})
        return entry.payload

    def set(self, fingerprint: str, payload: Payload, ttl: float) -> None:
        self._store.set(CacheEntry(key=fingerprint, payload=payload, stored_at=self._clock(), ttl=ttl))
        logger.debug("cache.set", extra={"cache_key": fingerprint[:16], "ttl_s": ttl})

    async def get_or_compute(
        self,
        fingerprint: str,
        ttl: float,
        compute_fn: Callable[[], Awaitable[Payload]],
    ) -> Payload:
        """Return the fresh cached payload, or compute, store and return a new one.

        Exceptions from ``compute_fn`` propagate and nothing is stored.
        """
        cached = self.get(fingerprint)
        if cached is not None:
            return cached

        payload = await compute_fn()
        self.set(fingerprint, payload, ttl)
        return payload

    def sweep(self) -> int:
        """Remove stale entries; returns how many were dropped."""
        return self._store.sweep(self._clock())

    def stats(self) -> dict[str, int | None]:
        """Return lightweight cache metrics without exposing values."""
        with self._lock:
            stats: dict[str, int | None] = {"hits": self._hits, "misses": self._misses}
        stats["entries"] = len(self._store) if hasattr(self._store, "__len__") else None
        stats["evictions"] = getattr(self._store, "evictions", None)
        return stats

    def _record_miss(self, fingerprint: str, reason: str) -> None:
        with self._lock:
            self._misses += 1
        logger.debug("cache.miss", extra={"cache_key": fingerprint[:16], "reason": reason})
