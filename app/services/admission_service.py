"""Role-gated admission for the admin area.

Decides, before any handler runs, whether a request to a protected path may
proceed. The decision is recomputed on every request from the session and
role collaborators; nothing is cached, so revoked roles and expired sessions
take effect immediately.

Every failure path denies (page redirect / API status):
- provider not configured: login?error=admin_not_configured / 503
- no session: login?returnUrl=<path> / 401
- role is not privileged: default landing path / 403
- lookup raised or timed out: login?error=admin_check_failed / 401
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union
from urllib.parse import quote

from app.adapters.identity.base import AbstractRoleProvider, AbstractSessionProvider
from app.core.config import AdminSettings
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Proceed:
    user_id: str | None = None


@dataclass(frozen=True)
class RedirectTo:
    path: str
    reason: str


@dataclass(frozen=True)
class Reject:
    status: int
    reason: str


AdmissionDecision = Union[Proceed, RedirectTo, Reject]


class DenialReason(str, Enum):
    NOT_CONFIGURED = "admin_not_configured"
    NOT_AUTHENTICATED = "not_authenticated"
    NOT_PRIVILEGED = "not_privileged"
    CHECK_FAILED = "admin_check_failed"


_API_STATUS = {
    DenialReason.NOT_CONFIGURED: 503,
    DenialReason.NOT_AUTHENTICATED: 401,
    DenialReason.NOT_PRIVILEGED: 403,
    DenialReason.CHECK_FAILED: 401,
}


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class AdmissionFilter:
    """Admission state machine for paths under the protected prefixes.

    Attributes:
        sessions: Session provider, or None when credentials are not configured.
        roles: Role provider, or None when credentials are not configured.
    """

    def __init__(
        self,
        sessions: AbstractSessionProvider | None,
        roles: AbstractRoleProvider | None,
        *,
        admin_settings: AdminSettings,
    ) -> None:
        self.sessions = sessions
        self.roles = roles
        self._settings = admin_settings

    def is_api_path(self, path: str) -> bool:
        return _under(path, self._settings.api_prefix)

    def is_protected(self, path: str) -> bool:
        return self.is_api_path(path) or _under(path, self._settings.protected_prefix)

    def _deny(self, reason: DenialReason, path: str) -> AdmissionDecision:
        if self.is_api_path(path):
            return Reject(status=_API_STATUS[reason], reason=reason.value)

        login = self._settings.login_path
        if reason is DenialReason.NOT_AUTHENTICATED:
            return RedirectTo(f"{login}?returnUrl={quote(path, safe='')}", reason.value)
        if reason is DenialReason.NOT_PRIVILEGED:
            return RedirectTo(self._settings.default_path, reason.value)
        return RedirectTo(f"{login}?error={reason.value}", reason.value)

    async def decide(self, path: str, access_token: str | None) -> AdmissionDecision:
        """Compute the admission decision for one request.

        Args:
            path: Request path.
            access_token: Session credential from the request, if any.

        Returns:
            ``Proceed`` for unprotected paths and privileged users, otherwise a
            ``RedirectTo`` (page paths) or ``Reject`` (API paths).
        """
        if not self.is_protected(path):
            return Proceed()

        if self.sessions is None or self.roles is None:
            logger.error("admission.not_configured", extra={"path": path})
            return self._deny(DenialReason.NOT_CONFIGURED, path)

        timeout = self._settings.lookup_timeout_seconds
        try:
            identity = await asyncio.wait_for(self.sessions.get_identity(access_token), timeout)
            if identity is None:
                logger.info("admission.no_session", extra={"path": path})
                return self._deny(DenialReason.NOT_AUTHENTICATED, path)

            role = await asyncio.wait_for(self.roles.get_role(identity.user_id), timeout)
        except Exception as exc:
            logger.error(
                "admission.check_failed",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            return self._deny(DenialReason.CHECK_FAILED, path)

        user_hash = fingerprint(identity.user_id)
        if role != self._settings.privileged_role:
            logger.info(
                "admission.not_privileged",
                extra={"path": path, "user_hash": user_hash, "role": role},
            )
            return self._deny(DenialReason.NOT_PRIVILEGED, path)

        logger.info("admission.granted", extra={"path": path, "user_hash": user_hash})
        return Proceed(user_id=identity.user_id)
