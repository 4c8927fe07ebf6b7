"""In-memory rate limit window store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading

from spontaneity.adapters.rate_limit.base import RateLimitStore, RateLimitWindow


class InMemoryRateLimitStore(RateLimitStore):
    """Dictionary-backed window store.

    Important:
        If the API runs with multiple workers (e.g., several Uvicorn
        processes), each worker enforces its own independent limits.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._windows: dict[tuple[str, str], RateLimitWindow] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def get(self, key: tuple[str, str]) -> RateLimitWindow | None:
        with self._lock:
            return self._windows.get(key)

    def put(self, window: RateLimitWindow) -> None:
        with self._lock:
            self._windows[window.key] = window

    def sweep(self, now: float) -> int:
        with self._lock:
            expired = [key for key, window in self._windows.items() if window.is_expired(now)]
            for key in expired:
                del self._windows[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()
