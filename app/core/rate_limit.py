"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Sliding window per client IP, taken from proxy headers.
- Each route declares its own scope and budget; keys are namespaced by scope
  so a tight budget on one endpoint is not consumed by traffic on another.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import ClientWindowStore, InMemorySlidingWindowRateLimiter
from app.core.config import settings
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
RATE_LIMITED_DETAIL = "Too many requests"

# Process-scoped state: lives from process start to stop, never persisted.
_window_store = ClientWindowStore()
_limiter: AbstractRateLimiter | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide limiter bound to the shared window store."""

    global _limiter

    if _limiter is None:
        _limiter = InMemorySlidingWindowRateLimiter(
            _window_store,
            sweep_probability=settings.app.rate_limit_sweep_probability,
        )
    return _limiter


def reset_rate_limiter() -> None:
    """Drop all counters and the cached limiter (used by tests)."""

    global _limiter

    _window_store.clear()
    _limiter = None


def get_client_ip(request: Request) -> str:
    """Identify the client from proxy headers.

    Prefers the first entry of ``X-Forwarded-For``, then ``X-Real-IP``, and
    falls back to ``"unknown"`` so every headerless client shares one bucket.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return UNKNOWN_CLIENT


def check_rate_limit(
    request: Request,
    scope: str,
    *,
    limit: int,
    window_ms: int,
) -> RateLimitResult | None:
    """Count one request from the caller against a scope's budget.

    Returns:
        The limiter result, or None when rate limiting is disabled.
    """

    if not settings.app.rate_limit_enabled:
        return None

    client_ip = get_client_ip(request)
    result = get_rate_limiter().consume(
        f"{scope}:{client_ip}",
        limit=limit,
        window_ms=window_ms,
    )
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "scope": scope,
                "client_hash": fingerprint(client_ip),
                "remaining": result.remaining,
            },
        )
    else:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": scope,
                "client_hash": fingerprint(client_ip),
                "limit": result.limit,
                "window_ms": window_ms,
                "retry_after_s": result.retry_after_seconds,
            },
        )
    return result


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers describing a denial (empty when headers are turned off)."""

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        if result.retry_after_seconds is not None:
            headers["Retry-After"] = str(result.retry_after_seconds)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at_ms // 1000)
    return headers


def rate_limited(
    scope: str,
    *,
    limit: Callable[[], int],
    window_ms: Callable[[], int],
) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency enforcing a per-client budget for one route.

    Budgets are read through callables so settings changes (tests, reloads)
    take effect without rebuilding the router.

    Usage:
        @router.get(
            "/things",
            dependencies=[Depends(rate_limited("things", limit=lambda: 30, window_ms=lambda: 60_000))],
        )

    Args:
        scope: Namespace for the limiter key.
        limit: Returns requests allowed per window.
        window_ms: Returns the window length in milliseconds.
    """

    async def enforce_rate_limit(request: Request) -> None:
        result = check_rate_limit(request, scope, limit=limit(), window_ms=window_ms())
        if result is None or result.allowed:
            return

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMITED_DETAIL,
            headers=rate_limit_headers(result) or None,
        )

    return enforce_rate_limit
