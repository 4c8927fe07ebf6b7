"""HTTP tests for the cards, tenant and health routes."""

import pytest
from fastapi.testclient import TestClient

from spontaneity.core.app_factory import create_app
from spontaneity.core.services import get_orchestrator

PAYLOAD = {
    "aiCards": [
        {
            "title": "Jazz Night",
            "description": "Live trio downstairs.",
            "vibeTags": ["music"],
            "navigationLink": None,
        }
    ],
    "sources": {"openai": 1, "gemini": 0, "fallback": 0},
    "weather": None,
    "combinedDataCount": 0,
    "diagnostics": {"openaiRateLimited": False, "geminiRateLimited": False, "errors": []},
}


class FakeOrchestrator:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def run(self, tenant_id: str, lat: float, lng: float, mood: str) -> dict:
        self.calls.append((tenant_id, lat, lng, mood))
        return PAYLOAD


@pytest.fixture
def orchestrator() -> FakeOrchestrator:
    return FakeOrchestrator()


@pytest.fixture
def client(orchestrator: FakeOrchestrator) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return TestClient(app)


class TestSpontaneousCards:
    """GET and POST /v1/spontaneous-cards."""

    def test_success_with_api_key_header(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.get(
            "/v1/spontaneous-cards",
            params={"lat": "40.7128", "lng": "-74.006", "mood": "chill"},
            headers={"X-API-Key": "demo-key-1"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["aiCards"][0]["vibeTags"] == ["music"]
        assert data["diagnostics"]["openaiRateLimited"] is False
        assert orchestrator.calls == [("tenant-1", 40.7128, -74.006, "chill")]
        assert resp.headers.get("X-Request-ID")

    def test_lon_alias_and_default_mood(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.get(
            "/v1/spontaneous-cards",
            params={"lat": "1.5", "lon": "2.5"},
            headers={"X-Tenant-ID": "tenant-2"},
        )

        assert resp.status_code == 200
        assert orchestrator.calls == [("tenant-2", 1.5, 2.5, "adventurous")]

    def test_bearer_token_is_accepted(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.get(
            "/v1/spontaneous-cards",
            params={"lat": "1", "lng": "2"},
            headers={"Authorization": "Bearer demo-key-2"},
        )

        assert resp.status_code == 200
        assert orchestrator.calls[0][0] == "tenant-2"

    def test_post_body_carries_tenant_and_coordinates(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.post(
            "/v1/spontaneous-cards",
            json={"lat": 10, "lng": 20, "mood": "curious", "tenantId": "tenant-7"},
            headers={"X-API-Key": "demo-key-1"},
        )

        assert resp.status_code == 200
        assert orchestrator.calls == [("tenant-7", 10.0, 20.0, "curious")]

    def test_post_body_tenant_beats_query_tenant(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.post(
            "/v1/spontaneous-cards",
            params={"tenantId": "b"},
            json={"lat": 40.7128, "lng": -74.006, "mood": "social", "tenantId": "a"},
        )

        assert resp.status_code == 200
        assert orchestrator.calls == [("a", 40.7128, -74.006, "social")]

    def test_unresolved_tenant_returns_401(self, client: TestClient, orchestrator: FakeOrchestrator):
        resp = client.get("/v1/spontaneous-cards", params={"lat": "1", "lng": "2"})

        assert resp.status_code == 401
        error = resp.json()["error"]
        assert error["code"] == "tenant_unresolved"
        assert error["details"]["checked_sources"] == ["body", "query", "header", "cookie"]
        assert error["details"]["sources"]["headerApiKey"] is False
        assert "request_id" in error
        assert orchestrator.calls == []

    def test_disabled_tenant_returns_401_without_leaking_key(self, client: TestClient):
        resp = client.get(
            "/v1/spontaneous-cards",
            params={"lat": "1", "lng": "2"},
            headers={"X-API-Key": "off-key"},
        )

        assert resp.status_code == 401
        assert resp.json()["error"]["details"]["sources"]["headerApiKey"] is True
        assert "off-key" not in resp.text

    @pytest.mark.parametrize(
        "params",
        [
            {"lng": "2"},
            {"lat": "abc", "lng": "2"},
            {"lat": "91", "lng": "2"},
            {"lat": "1", "lng": "-181"},
            {"lat": "nan", "lng": "2"},
        ],
    )
    def test_invalid_coordinates_return_400(self, client: TestClient, params):
        resp = client.get("/v1/spontaneous-cards", params=params, headers={"X-Tenant-ID": "tenant-1"})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_coordinates"

    def test_ai_event_quota_returns_429_with_headers(self, client: TestClient, orchestrator: FakeOrchestrator):
        headers = {"X-API-Key": "test-key"}
        params = {"lat": "1", "lng": "2"}

        for _ in range(10):
            assert client.get("/v1/spontaneous-cards", params=params, headers=headers).status_code == 200

        resp = client.get("/v1/spontaneous-cards", params=params, headers=headers)

        assert resp.status_code == 429
        assert resp.headers["X-RateLimit-Limit"] == "10"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert int(resp.headers["X-RateLimit-Reset"]) > 0
        assert 0 < int(resp.headers["Retry-After"]) <= 60
        details = resp.json()["error"]["details"]
        assert details["operation"] == "ai_events"
        assert details["limit"] == 10
        assert "reset_at_iso" in details
        assert len(orchestrator.calls) == 10

    def test_quota_is_per_tenant(self, client: TestClient):
        params = {"lat": "1", "lng": "2"}
        for _ in range(11):
            client.get("/v1/spontaneous-cards", params=params, headers={"X-API-Key": "test-key"})

        resp = client.get("/v1/spontaneous-cards", params=params, headers={"X-API-Key": "demo-key-1"})
        assert resp.status_code == 200


class TestTenantResolve:
    def test_resolves_from_query(self, client: TestClient):
        resp = client.get("/v1/tenant/resolve", params={"apiKey": "demo-key-2"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["tenantId"] == "tenant-2"
        assert data["source"] == "query.apiKey"
        assert data["sources"]["queryApiKey"] is True

    def test_resolves_from_cookie_on_post(self, client: TestClient):
        client.cookies.set("tenantId", "tenant-1")
        resp = client.post("/v1/tenant/resolve", json={})

        assert resp.status_code == 200
        assert resp.json()["source"] == "cookie.tenantId"

    def test_unresolved_returns_401(self, client: TestClient):
        assert client.post("/v1/tenant/resolve", json={"apiKey": "nope"}).status_code == 401


class TestHealthAndDocs:
    def test_health(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_openapi_documents_credentials(self, client: TestClient):
        schema = client.get("/openapi.json").json()

        schemes = schema["components"]["securitySchemes"]
        assert schemes["ApiKeyAuth"]["name"] == "X-API-Key"
        assert schemes["TenantId"]["name"] == "X-Tenant-ID"
        assert schema["paths"]["/health"]["get"]["security"] == []
        assert {t["name"] for t in schema["tags"]} >= {"Spontaneous", "Tenant", "Health"}

    def test_tenant_resolve_operations_have_distinct_ids(self, client: TestClient):
        schema = client.get("/openapi.json").json()

        resolve = schema["paths"]["/v1/tenant/resolve"]
        assert set(resolve) == {"get", "post"}
        assert resolve["get"]["operationId"] != resolve["post"]["operationId"]
