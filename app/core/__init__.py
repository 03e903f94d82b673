"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication,
listings, chat). Nothing in here knows about listings or conversations.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - PermissionDeniedError: Authorization failures
    - ConflictError: State conflicts (duplicates, etc.)
    - ExternalServiceError: Infrastructure and network failures

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
"""
