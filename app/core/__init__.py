"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps. No chat logic
lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - MetadataMixin: Opaque JSON metadata storage

Services (import from core.services):
    - BaseService: Base class for service layer, bound to a database alias
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, UnauthenticatedError, PermissionDeniedError,
      NotFoundError, ConflictError

Infrastructure:
    - core.exception_handler: DRF exception handler (error envelope)
    - core.db: Startup database probing with bounded retries
    - core.views: Health check

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationError,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "UnauthenticatedError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
]
