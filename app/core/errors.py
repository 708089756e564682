"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Policy denials (rate limit exceeded, insufficient role) are not errors and
are never raised; they are returned as ordinary values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    http_status: int
    table: str
    source: str
    failed_sources: list[str]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input is malformed or missing."""


class ConfigurationAppError(AppError):
    """Raised when required external credentials are absent or placeholders."""


class CollaboratorAppError(AppError):
    """Raised when a downstream data/identity call fails or times out."""


class DataStoreQueryError(CollaboratorAppError):
    """Raised when the data store answered, but with an error response."""
