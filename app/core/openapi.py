"""OpenAPI schema customizations.

Adds the X-API-Key security scheme, tag descriptions and documents the
rate limit / error responses of the analysis endpoint.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "SEO",
        "description": "Article SEO scoring. Limited per client per day.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security and tag metadata.

    - Registers the ``ApiKeyAuth`` scheme (header ``X-API-Key``); it is
      only required when APP_API_KEY_REQUIRED=true, so operations list it
      as optional alongside anonymous access.
    - Health endpoints are marked ``security: []``.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Required only when the server enables API key auth.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}, {}])

        tags = schema.setdefault("tags", [])
        known = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in known)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
