"""Tests for tenant resolution precedence and the API key registry."""

import pytest

from spontaneity.services.tenant_resolver import (
    RequestCredentials,
    TenantIdentity,
    TenantRegistry,
    TenantResolver,
    parse_tenant_registry,
)


@pytest.fixture
def resolver() -> TenantResolver:
    registry = TenantRegistry(parse_tenant_registry("demo-key-1:tenant-1,demo-key-2:tenant-2,off-key:tenant-x:disabled"))
    return TenantResolver(registry)


class TestParseTenantRegistry:
    def test_parses_entries_and_disabled_flag(self) -> None:
        registry = parse_tenant_registry(" k1:tenant-1 , k2:tenant-2:disabled ")

        assert registry["k1"].tenant_id == "tenant-1"
        assert registry["k1"].enabled is True
        assert registry["k2"].enabled is False

    def test_skips_malformed_entries(self) -> None:
        assert parse_tenant_registry("novalue,:tenant,key:,,ok:t") == {"ok": parse_tenant_registry("ok:t")["ok"]}

    def test_empty_configuration(self) -> None:
        assert parse_tenant_registry(None) == {}
        assert parse_tenant_registry("") == {}


class TestTenantResolver:
    """Precedence: direct id (body > query > header > cookie), then first API key."""

    def test_body_tenant_id_beats_header_and_api_key(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(
            RequestCredentials(
                body_tenant_id="tenant-2",
                header_tenant_id="tenant-1",
                header_api_key="demo-key-1",
            )
        )
        assert identity == TenantIdentity(tenant_id="tenant-2", source="body.tenantId")

    def test_body_tenant_id_beats_query_tenant_id(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(RequestCredentials(body_tenant_id="a", query_tenant_id="b"))
        assert identity == TenantIdentity(tenant_id="a", source="body.tenantId")

    def test_cookie_tenant_id_beats_any_api_key(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(RequestCredentials(body_api_key="demo-key-1", cookie_tenant_id="tenant-9"))
        assert identity == TenantIdentity(tenant_id="tenant-9", source="cookie.tenantId")

    def test_query_before_header(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(RequestCredentials(query_tenant_id="q", header_tenant_id="h"))
        assert identity.tenant_id == "q"
        assert identity.source == "query.tenantId"

    def test_header_api_key_only(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(RequestCredentials(header_api_key="demo-key-2"))
        assert identity == TenantIdentity(tenant_id="tenant-2", source="header.apiKey")

    def test_blank_values_are_ignored(self, resolver: TenantResolver) -> None:
        identity = resolver.resolve(
            RequestCredentials(body_tenant_id="   ", query_api_key="", cookie_api_key=" demo-key-1 ")
        )
        assert identity == TenantIdentity(tenant_id="tenant-1", source="cookie.apiKey")

    def test_unknown_api_key_returns_none(self, resolver: TenantResolver) -> None:
        assert resolver.resolve(RequestCredentials(header_api_key="nope")) is None

    def test_disabled_tenant_returns_none(self, resolver: TenantResolver) -> None:
        assert resolver.resolve(RequestCredentials(header_api_key="off-key")) is None

    def test_only_first_api_key_is_consulted(self, resolver: TenantResolver) -> None:
        credentials = RequestCredentials(query_api_key="unknown", cookie_api_key="demo-key-1")
        assert resolver.resolve(credentials) is None

    def test_no_credentials(self, resolver: TenantResolver) -> None:
        assert resolver.resolve(RequestCredentials()) is None


class TestDescribeSources:
    def test_reports_presence_without_values(self) -> None:
        sources = RequestCredentials(header_api_key="secret", body_tenant_id=" ").describe_sources()

        assert sources["headerApiKey"] is True
        assert sources["bodyTenantId"] is False
        assert len(sources) == 8
        assert "secret" not in repr(sources)
