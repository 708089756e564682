"""HTTP middleware: request correlation and admin admission.

``request_id_middleware``:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for log correlation
- Echoes request_id and total duration in response headers

``admin_admission_middleware``:
- Runs the admission filter for protected paths only
- Spends the admin API rate budget before any upstream lookup
- Redirects or rejects before any route handler executes
- Exposes the admitted user id as ``request.state.admin_user_id``

Usage:
    app.middleware("http")(admin_admission_middleware)
    app.middleware("http")(request_id_middleware)  # registered last = outermost
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from app.core import dependencies
from app.core.config import settings
from app.core.exception_handlers import error_body
from app.core.logging import clear_request_id, set_request_id
from app.core.rate_limit import RATE_LIMITED_DETAIL, check_rate_limit, rate_limit_headers
from app.services.admission_service import RedirectTo, Reject

ADMIN_API_RATE_SCOPE = "admin_api"

_REJECT_MESSAGES = {
    401: "Unauthorized",
    403: "Forbidden",
    503: "Admin access is not configured",
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a correlation id to the request and report its duration.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response with ``X-Request-ID`` and ``X-Request-Duration-ms`` headers.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def admin_admission_middleware(request: Request, call_next) -> Response:
    """Apply the admission decision for protected paths; pass others through."""

    path = request.url.path
    admission = dependencies.get_admission_filter()
    if not admission.is_protected(path):
        return await call_next(request)

    # The admin API budget is spent before any identity or role lookup.
    if admission.is_api_path(path):
        result = check_rate_limit(
            request,
            ADMIN_API_RATE_SCOPE,
            limit=settings.app.admin_rate_limit_requests,
            window_ms=settings.app.admin_rate_limit_window_ms,
        )
        if result is not None and not result.allowed:
            return JSONResponse(
                status_code=429,
                content={"detail": RATE_LIMITED_DETAIL},
                headers=rate_limit_headers(result),
            )

    decision = await admission.decide(path, dependencies.extract_access_token(request))

    if isinstance(decision, RedirectTo):
        return RedirectResponse(decision.path, status_code=307)

    if isinstance(decision, Reject):
        return JSONResponse(
            status_code=decision.status,
            content=error_body(decision.reason, _REJECT_MESSAGES.get(decision.status, "Access denied")),
        )

    request.state.admin_user_id = decision.user_id
    return await call_next(request)
