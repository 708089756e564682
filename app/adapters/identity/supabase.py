"""Supabase Auth session provider and users-table role provider."""

from __future__ import annotations

import logging

import httpx

from app.adapters.datastore.base import AbstractDataStore
from app.adapters.identity.base import AbstractRoleProvider, AbstractSessionProvider, Identity
from app.core.errors import CollaboratorAppError, DataStoreQueryError
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)


class SupabaseSessionProvider(AbstractSessionProvider):
    """Validate an access token against ``/auth/v1/user``."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/auth/v1",
            headers={"apikey": anon_key},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_identity(self, access_token: str | None) -> Identity | None:
        if not access_token:
            return None

        try:
            response = await self._client.get(
                "/user",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            raise CollaboratorAppError(
                code="identity_unavailable",
                message="Identity provider could not be reached",
            ) from exc

        if response.status_code != 200:
            logger.info(
                "identity.rejected",
                extra={"http_status": response.status_code},
            )
            return None

        payload = response.json()
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return Identity(user_id=str(user_id), email=payload.get("email"))


class UsersTableRoleProvider(AbstractRoleProvider):
    """Read ``users.role`` for a user id through the data store."""

    def __init__(self, store: AbstractDataStore, *, table: str = "users") -> None:
        self._store = store
        self._table = table

    async def get_role(self, user_id: str) -> str | None:
        try:
            result = await self._store.select(
                self._table,
                columns="role",
                eq={"id": user_id},
                limit=1,
            )
        except DataStoreQueryError:
            logger.warning(
                "identity.role_lookup_rejected",
                extra={"user_hash": fingerprint(user_id)},
            )
            return None

        if not result.rows:
            return None
        role = result.rows[0].get("role")
        return str(role) if role is not None else None
