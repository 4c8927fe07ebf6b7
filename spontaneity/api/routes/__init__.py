from __future__ import annotations

from spontaneity.api.routes.cards import router as cards_router
from spontaneity.api.routes.health import router as health_router
from spontaneity.api.routes.tenant import router as tenant_router

__all__ = ["cards_router", "health_router", "tenant_router"]
