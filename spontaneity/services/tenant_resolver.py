"""Tenant resolution from the credential surfaces of a request.

A request may carry a direct tenant identifier and/or an API key in four
places: JSON body, query string, headers and cookies. Precedence for both
signals is body > query > header > cookie. A direct identifier found at any
level wins outright; otherwise the first API key (same precedence) is looked
up in the tenant registry.

The resolver never raises for a missing identity: it returns None and the
HTTP layer answers 401.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

SOURCE_ORDER: tuple[str, ...] = ("body", "query", "header", "cookie")


@dataclass(frozen=True)
class TenantIdentity:
    """Tenant resolved for a request. Immutable for the request lifetime."""

    tenant_id: str
    source: str


@dataclass(frozen=True)
class TenantRecord:
    tenant_id: str
    enabled: bool = True


@dataclass(frozen=True)
class RequestCredentials:
    """Raw credential values found on one request (None when absent)."""

    body_tenant_id: str | None = None
    query_tenant_id: str | None = None
    header_tenant_id: str | None = None
    cookie_tenant_id: str | None = None
    body_api_key: str | None = None
    query_api_key: str | None = None
    header_api_key: str | None = None
    cookie_api_key: str | None = None

    def tenant_ids(self) -> list[tuple[str, str | None]]:
        return [(source, getattr(self, f"{source}_tenant_id")) for source in SOURCE_ORDER]

    def api_keys(self) -> list[tuple[str, str | None]]:
        return [(source, getattr(self, f"{source}_api_key")) for source in SOURCE_ORDER]

    def describe_sources(self) -> dict[str, bool]:
        """Presence map of every surface, safe to log or return to clients."""
        return {
            _camel(f.name): bool(_clean(getattr(self, f.name))) for f in fields(self)
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _clean(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _hash_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def parse_tenant_registry(entries: str | None) -> dict[str, TenantRecord]:
    """Parse ``api_key:tenant_id[:disabled]`` entries into a registry.

    Examples:
        >>> sorted(parse_tenant_registry("k1:tenant-1, k2:tenant-2:disabled"))
        ['k1', 'k2']
        >>> parse_tenant_registry(None)
        {}
    """
    registry: dict[str, TenantRecord] = {}
    if not entries:
        return registry

    for raw in entries.split(","):
        parts = [part.strip() for part in raw.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            continue
        api_key, tenant_id = parts[0], parts[1]
        enabled = not (len(parts) > 2 and parts[2].lower() == "disabled")
        registry[api_key] = TenantRecord(tenant_id=tenant_id, enabled=enabled)
    return registry


class TenantRegistry:
    """Maps opaque API keys to tenants."""

    def __init__(self, records: dict[str, TenantRecord] | None = None) -> None:
        self._records = dict(records or {})

    def lookup(self, api_key: str) -> TenantRecord | None:
        """Return the enabled tenant for api_key, or None if unknown/disabled."""
        record = self._records.get(api_key)
        if record is None:
            logger.warning("tenant.unknown_api_key", extra={"api_key_hash": _hash_key(api_key)})
            return None
        if not record.enabled:
            logger.warning(
                "tenant.disabled",
                extra={"tenant_id": record.tenant_id, "api_key_hash": _hash_key(api_key)},
            )
            return None
        return record


class TenantResolver:
    """Derives a tenant identity from a request's credentials."""

    def __init__(self, registry: TenantRegistry) -> None:
        self.registry = registry

    def resolve(self, credentials: RequestCredentials) -> TenantIdentity | None:
        """Resolve the tenant for a request.

        Args:
            credentials: Values extracted from body, query, headers and cookies.

        Returns:
            The tenant identity, or None when no usable credential exists.
        """
        for source, value in credentials.tenant_ids():
            tenant_id = _clean(value)
            if tenant_id:
                return self._resolved(tenant_id, f"{source}.tenantId", credentials)

        for source, value in credentials.api_keys():
            api_key = _clean(value)
            if not api_key:
                continue
            record = self.registry.lookup(api_key)
            if record is None:
                # Only the first usable credential is consulted
                break
            return self._resolved(record.tenant_id, f"{source}.apiKey", credentials)

        logger.warning("tenant.unresolved", extra={"sources": credentials.describe_sources()})
        return None

    @staticmethod
    def _resolved(tenant_id: str, source: str, credentials: RequestCredentials) -> TenantIdentity:
        logger.info(
            "tenant.resolved",
            extra={
                "tenant_id": tenant_id,
                "tenant_source": source,
                "sources": credentials.describe_sources(),
            },
        )
        return TenantIdentity(tenant_id=tenant_id, source=source)
