"""Process-scoped collaborators and their FastAPI dependency getters.

Instances are created lazily on first use and cached in-module so every
request shares the same HTTP connection pools. ``close_collaborators`` is
called from the application lifespan on shutdown. Tests replace them through
``app.dependency_overrides`` or by patching the getters.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.datastore.base import AbstractDataStore
from app.adapters.datastore.supabase_rest import SupabaseRestDataStore
from app.adapters.identity.supabase import SupabaseSessionProvider, UsersTableRoleProvider
from app.core.config import settings
from app.core.errors import ConfigurationAppError
from app.services.admission_service import AdmissionFilter
from app.services.content_sources import build_default_sources
from app.services.search_service import SearchService

logger = logging.getLogger(__name__)

_data_store: SupabaseRestDataStore | None = None
_admin_data_store: SupabaseRestDataStore | None = None
_session_provider: SupabaseSessionProvider | None = None


def _require_configured() -> None:
    if not settings.supabase.is_configured:
        raise ConfigurationAppError(
            code="datastore_not_configured",
            message="Data store credentials are not configured",
            details={"hint": "Set SUPABASE_URL and SUPABASE_ANON_KEY"},
        )


def get_data_store() -> AbstractDataStore:
    """Store queried with the public anon key.

    Raises:
        ConfigurationAppError: Credentials are missing or placeholders.
    """
    global _data_store

    _require_configured()
    if _data_store is None:
        _data_store = SupabaseRestDataStore(
            settings.supabase.url,  # type: ignore[arg-type]
            settings.supabase.anon_key,  # type: ignore[arg-type]
            timeout_seconds=settings.supabase.timeout_seconds,
        )
    return _data_store


def get_admin_data_store() -> AbstractDataStore:
    """Store queried with the service role key (anon key when none is set)."""
    global _admin_data_store

    _require_configured()
    if _admin_data_store is None:
        _admin_data_store = SupabaseRestDataStore(
            settings.supabase.url,  # type: ignore[arg-type]
            settings.supabase.service_role_key or settings.supabase.anon_key,  # type: ignore[arg-type]
            timeout_seconds=settings.supabase.timeout_seconds,
        )
    return _admin_data_store


def get_search_service() -> SearchService:
    return SearchService(
        build_default_sources(get_data_store()),
        max_results=settings.search.max_results,
        fallback_distance_miles=settings.search.fallback_distance_miles,
    )


def get_admission_filter() -> AdmissionFilter:
    """Admission filter wired to Supabase, or unconfigured (always denying)."""
    global _session_provider

    if not settings.supabase.is_configured:
        return AdmissionFilter(None, None, admin_settings=settings.admin)

    if _session_provider is None:
        _session_provider = SupabaseSessionProvider(
            settings.supabase.url,  # type: ignore[arg-type]
            settings.supabase.anon_key,  # type: ignore[arg-type]
            timeout_seconds=settings.supabase.timeout_seconds,
        )
    return AdmissionFilter(
        _session_provider,
        UsersTableRoleProvider(get_admin_data_store()),
        admin_settings=settings.admin,
    )


def extract_access_token(request: Request) -> str | None:
    """Session credential from a bearer header, else from the session cookie."""
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return request.cookies.get(settings.supabase.access_token_cookie) or None


async def close_collaborators() -> None:
    """Close pooled HTTP clients (application shutdown)."""
    global _data_store, _admin_data_store, _session_provider

    for client in (_data_store, _admin_data_store, _session_provider):
        if client is not None:
            await client.aclose()
    _data_store = None
    _admin_data_store = None
    _session_provider = None
    logger.info("collaborators.closed")
