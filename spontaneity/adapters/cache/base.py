"""Cache store interface.

Stores hold entries verbatim; staleness is judged by the caller from
``stored_at`` and ``ttl`` so every backend applies the same rule.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A composed response stored under its request fingerprint."""

    key: str
    payload: dict[str, Any]
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class CacheStore(ABC):
    """Key/value storage for cache entries."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, entry: CacheEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: float) -> int:
        """Remove entries that are no longer fresh at ``now``.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError
