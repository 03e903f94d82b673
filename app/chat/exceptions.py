"""
Messaging error taxonomy.

Services report expected failures as ServiceResult error codes. This module
maps those codes onto the core.exceptions hierarchy for callers that want
exceptions (chat.api, chat.session) and adds the two infrastructure errors
the real-time path can hit.

Usage:
    from chat.exceptions import raise_for_result

    result = MessageService.send_message(...)
    message = raise_for_result(result)  # returns result.data or raises
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

if TYPE_CHECKING:
    from core.services import ServiceResult

T = TypeVar("T")


class TransientNetworkError(ExternalServiceError):
    """
    A call timed out or lost its connection to the database or channel layer.

    Safe to retry; the chat session only does so automatically for
    read-state updates.
    """

    default_error_code = "TRANSIENT_NETWORK_ERROR"


class ChannelDisconnectedError(ExternalServiceError):
    """The event channel subscription dropped; live updates paused."""

    default_error_code = "CHANNEL_DISCONNECTED"


ERROR_CODE_EXCEPTIONS: dict[str, type[BaseApplicationError]] = {
    # Validation
    "EMPTY_BODY": ValidationError,
    "BODY_TOO_LONG": ValidationError,
    "NOT_PARTICIPANT": ValidationError,
    "SAME_USER": ValidationError,
    "OWNER_MISMATCH": ValidationError,
    "INACTIVE_USER": ValidationError,
    # Not found
    "CONVERSATION_NOT_FOUND": NotFoundError,
    "LISTING_NOT_FOUND": NotFoundError,
    "USER_NOT_FOUND": NotFoundError,
    "MESSAGE_NOT_FOUND": NotFoundError,
    # Authorization
    "NOT_RECIPIENT": PermissionDeniedError,
    # Conflict
    "CONVERSATION_CONFLICT": ConflictError,
    # Infrastructure
    "TRANSIENT_NETWORK_ERROR": TransientNetworkError,
    "CHANNEL_DISCONNECTED": ChannelDisconnectedError,
}


def exception_for_result(result: ServiceResult) -> BaseApplicationError:
    """Build the exception matching a failed result's error code."""
    exc_class = ERROR_CODE_EXCEPTIONS.get(result.error_code or "", BaseApplicationError)
    return exc_class(
        result.error or "Request failed",
        error_code=result.error_code,
        details=result.errors,
    )


def raise_for_result(result: ServiceResult[T]) -> T:
    """Return the data of a successful result or raise its mapped exception."""
    if result.success:
        return result.data
    raise exception_for_result(result)
