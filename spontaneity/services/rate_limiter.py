"""Per-tenant, per-operation fixed-window rate limiting.

Each (tenant, operation) pair owns a window created lazily by its first
request. While the window is live, admitted requests increment its count;
once ``count`` reaches ``limit`` further checks are denied without touching
the window (an exhausted window is never extended). The first check after
``reset_at`` replaces the window with a fresh one.

Every call to ``check`` consumes quota, so callers must check once per
request and operation.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from enum import Enum
from typing import Callable

from spontaneity.adapters.rate_limit.base import RateLimitResult, RateLimitStore, RateLimitWindow
from spontaneity.core.config import TenantRateLimits

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 60 * 60


class RateLimitOperation(str, Enum):
    """Operations with independent quotas."""

    AI_EVENTS = "ai_events"
    REQUESTS = "requests"
    REQUESTS_HOUR = "requests_hour"


def limit_for(config: TenantRateLimits, operation: RateLimitOperation) -> tuple[int, int]:
    """Return ``(limit, window_seconds)`` for an operation."""
    if operation is RateLimitOperation.AI_EVENTS:
        return config.ai_events_per_minute, MINUTE
    if operation is RateLimitOperation.REQUESTS_HOUR:
        return config.requests_per_hour, HOUR
    return config.requests_per_minute, MINUTE


class RateLimiter:
    """Tracks request quotas per tenant and operation.

    Args:
        store: Window storage backend.
        tenant_limits: Quota overrides keyed by tenant id.
        default_limits: Quotas for tenants without an override.
        clock: Time source returning UNIX time in seconds.
    """

    def __init__(
        self,
        store: RateLimitStore,
        *,
        tenant_limits: dict[str, TenantRateLimits] | None = None,
        default_limits: TenantRateLimits | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._tenant_limits = dict(tenant_limits or {})
        self._default_limits = default_limits or TenantRateLimits()
        self._clock = clock
        self._lock = threading.RLock()

    def config_for(self, tenant_id: str) -> TenantRateLimits:
        return self._tenant_limits.get(tenant_id, self._default_limits)

    def check(self, tenant_id: str, operation: RateLimitOperation) -> RateLimitResult:
        """Consume one unit of quota for tenant_id on operation.

        Args:
            tenant_id: Resolved tenant identifier.
            operation: Operation being performed.

        Returns:
            RateLimitResult; ``allowed`` is False when the window is exhausted.

        Raises:
            ValueError: If tenant_id is empty.
        """
        if not tenant_id:
            raise ValueError("tenant_id must be a non-empty string")

        operation = RateLimitOperation(operation)
        limit, window_seconds = limit_for(self.config_for(tenant_id), operation)
        key = (tenant_id, operation.value)

        with self._lock:
            now = self._clock()
            window = self._store.get(key)

            if window is None or window.is_expired(now):
                window = RateLimitWindow(key=key, count=1, reset_at=now + window_seconds, limit=limit)
                self._store.put(window)
                return self._allowed(window)

            if window.count < window.limit:
                window = RateLimitWindow(
                    key=key, count=window.count + 1, reset_at=window.reset_at, limit=window.limit
                )
                self._store.put(window)
                return self._allowed(window)

            retry_after = max(0, int(math.ceil(window.reset_at - now)))

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "tenant_id": tenant_id,
                "operation": operation.value,
                "limit": window.limit,
                "retry_after_s": retry_after,
            },
        )
        return RateLimitResult(
            allowed=False,
            limit=window.limit,
            remaining=0,
            reset_at=window.reset_at,
            retry_after_seconds=retry_after,
        )

    def sweep(self) -> int:
        """Drop expired windows to bound memory. Not needed for correctness."""
        return self._store.sweep(self._clock())

    @staticmethod
    def _allowed(window: RateLimitWindow) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=window.limit,
            remaining=max(0, window.limit - window.count),
            reset_at=window.reset_at,
            retry_after_seconds=None,
        )
