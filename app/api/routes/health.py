from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Also reports whether data store credentials are present, so a deployment
    missing them is visible without triggering an admission or search call.
    """

    return {
        "status": "ok",
        "datastore_configured": settings.supabase.is_configured,
    }
