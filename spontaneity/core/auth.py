"""Tenant authentication for the HTTP layer.

Credentials are collected from every surface the widget and partner
integrations use (JSON body, query string, headers, cookies) and resolved to
a tenant once per request. Requests without a usable credential get 401.

Usage:
    @router.get("/protected")
    async def protected(identity: TenantIdentity = Depends(require_tenant)):
        ...
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from spontaneity.core.config import settings
from spontaneity.core.errors import AuthenticationAppError
from spontaneity.core.logging import bind_tenant
from spontaneity.services.tenant_resolver import (
    SOURCE_ORDER,
    RequestCredentials,
    TenantIdentity,
    TenantRegistry,
    TenantResolver,
    parse_tenant_registry,
)

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"
API_KEY_HEADER = "X-API-Key"

_resolver: TenantResolver | None = None
_resolver_config: str | None = None


def get_tenant_resolver() -> TenantResolver:
    """Return a process-wide resolver built from ``APP_TENANT_API_KEYS``.

    Rebuilt when the configured registry string changes (primarily in tests).
    """
    global _resolver, _resolver_config

    config = settings.app.tenant_api_keys or ""
    if _resolver is None or _resolver_config != config:
        _resolver = TenantResolver(TenantRegistry(parse_tenant_registry(config)))
        _resolver_config = config

    return _resolver


async def read_json_body(request: Request) -> dict[str, Any]:
    """Return the request's JSON object body, or {} when there is none.

    Starlette caches the body, so route handlers can read it again.
    """
    if request.method not in ("POST", "PUT", "PATCH"):
        return {}
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("request.body_not_json", extra={"request_path": request.url.path})
        return {}
    return body if isinstance(body, dict) else {}


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _header_api_key(request: Request) -> str | None:
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        return api_key
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer":
        return token.strip() or None
    return authorization


async def extract_credentials(request: Request) -> RequestCredentials:
    """Collect tenant ids and API keys from body, query, headers and cookies."""
    body = await read_json_body(request)
    return RequestCredentials(
        body_tenant_id=_string(body.get("tenantId")),
        query_tenant_id=request.query_params.get("tenantId"),
        header_tenant_id=request.headers.get(TENANT_HEADER),
        cookie_tenant_id=request.cookies.get("tenantId"),
        body_api_key=_string(body.get("apiKey")),
        query_api_key=request.query_params.get("apiKey"),
        header_api_key=_header_api_key(request),
        cookie_api_key=request.cookies.get("apiKey"),
    )


async def require_tenant(request: Request) -> TenantIdentity:
    """FastAPI dependency resolving the tenant for the current request.

    Raises:
        AuthenticationAppError: 401 when no tenant can be resolved.
    """
    credentials = await extract_credentials(request)
    identity = get_tenant_resolver().resolve(credentials)
    if identity is None:
        raise AuthenticationAppError(
            code="tenant_unresolved",
            message="Unable to resolve tenant. Provide a tenant id or a valid API key.",
            details={
                "checked_sources": list(SOURCE_ORDER),
                "sources": credentials.describe_sources(),
            },
        )

    request.state.tenant = identity
    bind_tenant(identity.tenant_id)
    return identity
