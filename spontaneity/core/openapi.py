"""OpenAPI customization for tenant credentials and tag metadata.

Documents the two ways a client identifies its tenant (``X-API-Key`` and
``X-Tenant-ID``) as alternative security schemes, and exempts the health
endpoint from both.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

SECURITY_SCHEMES: Dict[str, Dict[str, Any]] = {
    "ApiKeyAuth": {
        "type": "apiKey",
        "in": "header",
        "name": "X-API-Key",
        "description": (
            "Tenant API key. May also be sent as 'Authorization: Bearer <key>', "
            "the 'apiKey' query parameter, body field or cookie."
        ),
    },
    "TenantId": {
        "type": "apiKey",
        "in": "header",
        "name": "X-Tenant-ID",
        "description": (
            "Direct tenant identifier. Takes precedence over any API key. May also "
            "be sent as the 'tenantId' query parameter, body field or cookie."
        ),
    },
}

TAGS: list[Dict[str, str]] = [
    {
        "name": "Spontaneous",
        "description": "Location and mood based suggestion cards.",
    },
    {
        "name": "Tenant",
        "description": "Tenant resolution for widget and plugin integrations.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security schemes and tags.

    Every operation accepts either scheme; health endpoints get
    ``security: []``.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        for name, scheme in SECURITY_SCHEMES.items():
            security_schemes.setdefault(name, scheme)

        # Alternatives: either credential is enough
        schema.setdefault("security", [{"ApiKeyAuth": []}, {"TenantId": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
