"""
Base service layer patterns for business logic encapsulation.

This module provides:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging and transaction helpers

Views handle HTTP concerns, models handle data, services handle logic.
Expected failures (validation, business rules, missing rows) come back as
ServiceResult.failure with an error code; unexpected failures (database
outages, bugs) propagate as exceptions.

Usage:
    from core.services import BaseService, ServiceResult

    class ListingService(BaseService):
        @classmethod
        def publish(cls, owner, title: str) -> ServiceResult[Listing]:
            if not title.strip():
                return ServiceResult.failure("Title is required", "EMPTY_TITLE")

            with cls.atomic():
                listing = Listing.objects.create(owner=owner, title=title)

            cls.get_logger().info(f"Published listing {listing.id}")
            return ServiceResult.success(listing)

    # In a view
    result = ListingService.publish(request.user, title)
    if result.success:
        return Response(ListingSerializer(result.data).data, status=201)
    exc = exception_for_result(result)
    return Response({"error": exc.message, "error_code": exc.error_code}, status=exc.http_status)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        meta: Extra outcome flags (e.g. {"created": True})

    Usage:
        result = ConversationService.get_or_create(listing_id, renter_id, owner_id)
        if result:
            conversation = result.data
        else:
            logger.info(f"Rejected: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, data: T, **meta: Any) -> ServiceResult[T]:
        """
        Create a successful result.

        Keyword arguments are stored in ``meta`` for callers that need to
        know more than the data, such as whether a row was created.

        Example:
            return ServiceResult.success(conversation, created=True)
        """
        return cls(success=True, data=data, meta=meta)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Example:
            return ServiceResult.failure("Message not found", "MESSAGE_NOT_FOUND")
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless collections of classmethods. Use ServiceResult
    for expected failures and let unexpected ones raise.

    Usage:
        class ReadStateService(BaseService):
            @classmethod
            def mark_message_read(cls, message_id: int) -> ServiceResult[bool]:
                with cls.atomic():
                    ...
                cls.get_logger().debug(f"Marked message {message_id} read")
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around transaction.atomic() that makes transaction
        boundaries explicit in service code. Nested use creates savepoints.
        """
        with transaction.atomic():
            yield
