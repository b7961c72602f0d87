"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"error": <message>, "code": <code>,
"request_id": <id>}`` (plus ``details`` when present).

Design:
- AppError subclasses -> mapped HTTP status (400, 403, 429, 500)
- Request body validation errors -> 400 invalid_input
- Unexpected Exception -> generic 500 (safety net)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AnalysisAppError,
    AppError,
    AuthenticationAppError,
    RateLimitAppError,
    StoreUnavailableError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

INVALID_BODY_MESSAGE = "Request body must be a JSON object with string fields title, headings and content."


def _status_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 403
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, (AnalysisAppError, StoreUnavailableError)):
        return 500
    return 400


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": message,
        "code": code,
        "request_id": get_request_id(),
    }
    if details:
        body["details"] = details
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to HTTP status codes:
    - ValidationAppError -> 400 Bad Request
    - AuthenticationAppError -> 403 Forbidden
    - RateLimitAppError -> 429 Too Many Requests (with rate limit headers)
    - AnalysisAppError -> 500 Internal Server Error

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error body.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "cause_type": type(exc.__cause__).__name__ if exc.__cause__ else None,
            "request_path": request.url.path,
        },
    )

    # Server-side failures never expose details
    details = exc.details if status_code < 500 else None
    headers = exc.headers if isinstance(exc, RateLimitAppError) else None

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, details),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn FastAPI body/param validation failures into 400 invalid_input."""

    fields = sorted(
        {
            ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            for err in exc.errors()
        }
        - {""}
    )
    logger.warning(
        "request_validation_failed",
        extra={
            "error_count": len(exc.errors()),
            "fields": fields,
            "request_path": request.url.path,
        },
    )

    details = {"context": {"fields": fields}} if fields else None
    return JSONResponse(
        status_code=400,
        content=_error_body("invalid_input", INVALID_BODY_MESSAGE, details),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the error for debugging while returning a generic message, so no
    implementation details or stack traces reach the client.
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
        content=_error_body("internal_server_error", GENERIC_ERROR_MESSAGE),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
