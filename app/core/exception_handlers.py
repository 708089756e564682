"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → appropriate HTTP status (400, 500, 503)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, CollaboratorAppError, ConfigurationAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_for_error(exc: AppError) -> int:
    """Map an AppError subclass to its HTTP status code."""
    if isinstance(exc, ConfigurationAppError):
        return 503
    if isinstance(exc, CollaboratorAppError):
        return 500
    return 400


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    """Build the error envelope shared by handlers and middleware."""
    error_content: dict = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    - ValidationAppError → 400 Bad Request (client fault)
    - CollaboratorAppError → 500 Internal Server Error (downstream fault)
    - ConfigurationAppError → 503 Service Unavailable (deployment fault)

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_for_error(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message; no stack traces or
    exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
