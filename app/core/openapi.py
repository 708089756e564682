"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- Tags metadata
- A bearer-token security scheme required only by the admin API
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import settings

TAGS_METADATA = [
    {"name": "Search", "description": "Proximity search across businesses and posts."},
    {"name": "Listings", "description": "Public, rate-limited listing feeds."},
    {"name": "Admin", "description": "Admin area; requires a session with the admin role."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and admin security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SessionBearer",
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Session access token (also accepted via the session cookie).",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        # Only the admin area is gated by the session.
        for path, methods in schema.get("paths", {}).items():
            protected = path.startswith(settings.admin.api_prefix) or path.startswith(
                settings.admin.protected_prefix
            )
            if not protected:
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"SessionBearer": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
