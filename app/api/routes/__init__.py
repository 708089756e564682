from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.health import router as health_router
from app.api.routes.listings import router as listings_router
from app.api.routes.search import router as search_router

__all__ = ["admin_router", "health_router", "listings_router", "search_router"]
