"""
Application exception hierarchy.

Every domain error carries a human-readable message, a machine-readable
error code and optional details, and knows which HTTP status it maps to so
API views and WebSocket consumers can render it without a lookup table.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input or business-rule violations (400)
    ├── NotFoundError - Resource not found (404)
    ├── PermissionDeniedError - Authorization failures (403)
    ├── ConflictError - State conflicts, unique constraint races (409)
    └── ExternalServiceError - Infrastructure/network failures (503)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("Message body cannot be empty", error_code="EMPTY_BODY")

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    Services return core.services.ServiceResult for expected failures.
    These exceptions are raised by callers that want exception semantics
    (plain-function APIs, async sessions) and by infrastructure code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, ids, etc.)
        http_status: HTTP status code used when rendering the error
        retryable: Whether repeating the same call may succeed
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500
    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Conversation not found",
                "error_code": "CONVERSATION_NOT_FOUND",
                "details": {"conversation_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation or a business rule fails.

    Example:
        raise ValidationError(
            "You cannot start a conversation with yourself",
            error_code="SAME_USER",
        )
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource does not exist or is not visible.

    Example:
        raise NotFoundError(
            f"Listing {listing_id} not found",
            error_code="LISTING_NOT_FOUND",
            details={"listing_id": listing_id},
        )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller is authenticated but not allowed to act.

    Example:
        raise PermissionDeniedError(
            "Only the recipient can mark a message as read",
            error_code="NOT_RECIPIENT",
        )
    """

    default_error_code: str = "PERMISSION_DENIED"
    http_status: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Typically produced by a unique constraint violation that could not be
    resolved by re-reading the winning row.
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when infrastructure outside the process fails.

    Covers the database connection, the channel layer and network
    timeouts. Log the original error; do not expose it to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 503
    retryable: bool = True
