"""In-memory cooldown store (single process only)."""

from __future__ import annotations

import threading

from spontaneity.adapters.cooldown.base import CooldownStore


class InMemoryCooldownStore(CooldownStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._deadlines: dict[str, float] = {}

    def get(self, provider: str) -> float | None:
        with self._lock:
            return self._deadlines.get(provider)

    def set(self, provider: str, cooldown_until: float) -> None:
        with self._lock:
            self._deadlines[provider] = cooldown_until
