"""Rate limiter interfaces.

The limiter depends on this abstraction (not the concrete store) so window
state can move to a shared backend for multi-instance deployments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


@dataclass(frozen=True)
class RateLimitWindow:
    """Fixed window for one (tenant, operation) pair."""

    key: tuple[str, str]
    count: int
    reset_at: float
    limit: int

    def is_expired(self, now: float) -> bool:
        return now > self.reset_at


class RateLimitStore(ABC):
    """Storage for rate limit windows keyed by (tenant_id, operation)."""

    @abstractmethod
    def get(self, key: tuple[str, str]) -> RateLimitWindow | None:
        """Return the stored window for key, expired or not."""
        raise NotImplementedError

    @abstractmethod
    def put(self, window: RateLimitWindow) -> None:
        """Insert or replace the window stored under ``window.key``."""
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: float) -> int:
        """Delete windows whose reset time has passed.

        Returns:
            Number of windows removed.
        """
        raise NotImplementedError
