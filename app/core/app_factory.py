from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import admin_router, health_router, listings_router, search_router
from app.core.config import settings
from app.core.dependencies import close_collaborators
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import admin_admission_middleware, request_id_middleware
from app.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_collaborators()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Community Marketplace API",
        description=(
            "Request admission and proximity search for the community marketplace: "
            "nearby search across businesses and posts ranked by distance, "
            "rate-limited public feeds, and a role-gated admin area."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    # Middleware: the last registered runs first, so request ids wrap admission.
    app.middleware("http")(admin_admission_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(search_router)
    app.include_router(listings_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
