"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
background housekeeping) so tests can build isolated instances.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from spontaneity.api.routes import cards_router, health_router, tenant_router
from spontaneity.core.config import settings
from spontaneity.core.exception_handlers import setup_exception_handlers
from spontaneity.core.logging import configure_logging
from spontaneity.core.middleware import request_id_middleware
from spontaneity.core.openapi import apply_openapi_customizations
from spontaneity.core.services import housekeeping_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run periodic rate-limit and cache sweeps for the app's lifetime."""
    interval = min(
        settings.app.rate_limit_sweep_interval_seconds,
        settings.app.cache_sweep_interval_seconds,
    )
    task = asyncio.create_task(housekeeping_loop(interval))
    logger.info("housekeeping.started", extra={"interval_s": interval})
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Spontaneity API",
        description=(
            "Tenant-aware API that turns a location and a mood into a short list "
            "of spontaneous experience cards. Nearby places, events and weather "
            "are gathered from open data sources and handed to one or more LLM "
            "providers; per-tenant rate limits, provider cooldowns and a short "
            "response cache protect quotas and upstream availability."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(cards_router, prefix="/v1")
    app.include_router(tenant_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security schemes, tags, exemptions)
    apply_openapi_customizations(app)

    return app
