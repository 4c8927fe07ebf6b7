"""Rate limiting dependency for FastAPI routes.

This module wires the per-tenant rate limiter into the HTTP layer. Routes
declare which operations they consume with ``enforce_rate_limit(...)``; each
listed operation is checked exactly once per request, after the tenant has
been resolved.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends

from spontaneity.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from spontaneity.core.auth import require_tenant
from spontaneity.core.config import TenantRateLimits, settings
from spontaneity.core.errors import QuotaExceededAppError
from spontaneity.services.rate_limiter import RateLimiter, RateLimitOperation
from spontaneity.services.tenant_resolver import TenantIdentity

logger = logging.getLogger(__name__)


_limiter: RateLimiter | None = None
_limiter_config: str | None = None


def _default_limits() -> TenantRateLimits:
    return TenantRateLimits(
        ai_events_per_minute=settings.app.default_ai_events_per_minute,
        requests_per_minute=settings.app.default_requests_per_minute,
        requests_per_hour=settings.app.default_requests_per_hour,
    )


def get_rate_limiter() -> RateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        RateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    defaults = _default_limits()
    config = repr((defaults, sorted(settings.app.tenant_rate_limits.items())))

    if _limiter is None or _limiter_config != config:
        _limiter = RateLimiter(
            InMemoryRateLimitStore(),
            tenant_limits=settings.app.tenant_rate_limits,
            default_limits=defaults,
        )
        _limiter_config = config

    return _limiter


def enforce_rate_limit(*operations: RateLimitOperation) -> Callable:
    """Build a dependency that consumes one unit of each listed operation.

    Usage:
        @router.get(
            "/cards",
            dependencies=[Depends(enforce_rate_limit(RateLimitOperation.REQUESTS))],
        )

    Raises:
        QuotaExceededAppError: 429 on the first exhausted operation.
    """

    async def dependency(identity: TenantIdentity = Depends(require_tenant)) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limiter = get_rate_limiter()
        for operation in operations:
            result = limiter.check(identity.tenant_id, operation)
            if result.allowed:
                logger.debug(
                    "rate_limit.allowed",
                    extra={
                        "tenant_id": identity.tenant_id,
                        "operation": operation.value,
                        "limit": result.limit,
                        "remaining": result.remaining,
                    },
                )
                continue

            reset_epoch = int(result.reset_at)
            raise QuotaExceededAppError(
                code="rate_limit_exceeded",
                message=f"Rate limit exceeded for {operation.value}. Try again later.",
                details={
                    "operation": operation.value,
                    "tenant_id": identity.tenant_id,
                    "limit": result.limit,
                    "remaining": 0,
                    "reset_at": reset_epoch,
                    "reset_at_iso": datetime.fromtimestamp(result.reset_at, tz=timezone.utc).isoformat(),
                    "retry_after": result.retry_after_seconds or 0,
                },
            )

    return dependency
