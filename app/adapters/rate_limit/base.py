"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
in-memory store can later be swapped for a shared one (e.g. Redis).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a single admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests still available in the trailing window.
        reset_at_ms: Epoch milliseconds when the oldest counted request leaves the window.
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, identifier: str, *, limit: int, window_ms: int) -> RateLimitResult:
        """Check and, when admitted, record one request for an identifier.

        Args:
            identifier: Client identity (e.g. IP address, optionally namespaced).
            limit: Requests allowed within the trailing window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def allow(self, identifier: str, limit: int, window_ms: int) -> bool:
        """Boolean form of :meth:`consume`."""
        return self.consume(identifier, limit=limit, window_ms=window_ms).allowed
