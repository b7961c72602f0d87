"""Application-level exception types.

Every failure that can reach a client is one of these, so the exception
handlers can map them to a status code and a safe message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context returned to clients alongside the message."""

    missing_fields: list[str]
    limit: int
    remaining: int
    reset_at: int
    hint: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for clients.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input is missing or malformed (HTTP 400)."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails (HTTP 403)."""


class AnalysisAppError(AppError):
    """Raised when the model call or its output parsing fails (HTTP 500).

    The message is always generic; the underlying cause is chained via
    ``__cause__`` and logged, never sent to the client.
    """


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client has used up its daily quota (HTTP 429)."""

    headers: dict[str, str] | None = None


class StoreUnavailableError(AppError):
    """Raised by the durable counter store on network/service failure.

    Recovered inside the rate limiter; never surfaced to clients.
    """
