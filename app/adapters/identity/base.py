from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
	"""Authenticated user as reported by the session provider."""

	user_id: str
	email: str | None = None


class AbstractSessionProvider(ABC):
	"""Resolves request credentials to the current user."""

	@abstractmethod
	async def get_identity(self, access_token: str | None) -> Identity | None:
		"""Return the signed-in user, or None when there is no valid session.

		An error answer from the provider (expired or forged token) is reported
		as None. Transport failures raise.
		"""
		...


class AbstractRoleProvider(ABC):
	"""Reads the role attribute of a user record."""

	@abstractmethod
	async def get_role(self, user_id: str) -> str | None:
		"""Return the user's role, or None when the record is missing or unreadable."""
		...
