"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. No contribution or
payment logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Logger and transaction helper for service classes

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - PermissionDeniedError: Authorization failures
    - ConflictError: State conflicts (invalid status transitions)

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    PermissionDeniedError,
)

__all__ = [
    # Services
    "BaseService",
    # Exceptions
    "BaseApplicationError",
    "PermissionDeniedError",
    "ConflictError",
]
