"""
Base exception classes for application-wide error handling.

Every domain error carries a human-readable message, a machine-readable error
code and optional details, and renders to the JSON error envelope shared by
the REST API and the realtime gateway.

Exception Hierarchy:
    BaseApplicationError (base, 400)
    ├── ValidationError - Malformed input (400)
    ├── UnauthenticatedError - Missing or bad credentials (401)
    ├── PermissionDeniedError - Authenticated but not allowed (403)
    ├── NotFoundError - Resource not found (404)
    └── ConflictError - Duplicates and state conflicts (409)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("uptoSeq must be an integer", error_code="INVALID_SEQ")

    raise NotFoundError(
        "User not found",
        error_code="USER_NOT_FOUND",
        details={"user_id": user_id},
    )

    # Rendered by core.exception_handler for HTTP, and by the gateway as
    # {"ok": false, "error": exc.message} for socket acknowledgments.

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.),
    and core.exception_handler maps both to the same envelope.
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
        status_code: HTTP status used when the error reaches a view
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

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
        Convert exception to the API error envelope.

        Example:
            {
                "success": False,
                "msg": "Message not found",
                "error_code": "MESSAGE_NOT_FOUND",
                "details": {"message_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "success": False,
            "msg": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    For request-shape validation use DRF serializers; this covers the rules
    services enforce themselves (unknown message type, empty text body,
    quoting a message from another chat).

    Example:
        raise ValidationError(
            "Validation failed",
            details={"message_type": ["Unsupported message type: sticker"]},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class UnauthenticatedError(BaseApplicationError):
    """
    Raised when credentials are missing or wrong.

    Login failures use a single generic message so that callers cannot
    probe which phone numbers are registered.
    """

    default_error_code: str = "UNAUTHENTICATED"
    status_code: int = 401


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated user lacks permission for an operation.

    Example:
        if actor_role < ChatMember.Role.ADMIN:
            raise PermissionDeniedError(
                "Only owners and admins can add members",
                error_code="NOT_CHAT_ADMIN",
            )
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected. List queries
    return empty results instead.
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Example:
        if User.objects.filter(phone_number=phone_number).exists():
            raise ConflictError(
                "Phone number already registered",
                error_code="PHONE_EXISTS",
            )
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409
