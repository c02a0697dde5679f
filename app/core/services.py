"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class bound to a database alias

Service Layer Philosophy:
    Services encapsulate business logic separate from views and consumers.
    Views and consumers handle transport concerns, models handle data,
    services handle logic. Both the REST views and the WebSocket gateway
    call the same service methods.

Pattern Comparison:
    - ServiceResult: Expected failures the caller branches on (bad login)
    - Exceptions (core.exceptions): Rule violations that abort the operation

Usage:
    from core.services import BaseService, ServiceResult

    class AuthService(BaseService):
        def register(self, phone_number: str, password: str) -> ServiceResult[User]:
            if User.objects.using(self.using).filter(phone_number=phone_number).exists():
                return ServiceResult.failure(
                    "Phone number already registered",
                    error_code="PHONE_EXISTS",
                )

            with self.atomic():
                user = User.objects.db_manager(self.using).create_user(...)

            self.get_logger().info(f"Registered user {user.id}")
            return ServiceResult.success(user)

    # In view
    result = AuthService().register(phone_number, password)
    if result.success:
        return Response(UserSerializer(result.data).data, status=201)
    return Response(result.to_response(), status=409)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import DEFAULT_DB_ALIAS, transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
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

    Usage:
        result = AuthService().login(phone_number, password)
        if result:
            user = result.data
        else:
            logger.info(f"Login failed: {result.error_code}")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to the API response envelope.

        Failures use the same shape as core.exception_handler:
        {"success": False, "msg": ..., "error_code": ..., "errors": ...}
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "msg": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    A service instance is bound to one database alias. Every query and every
    transaction it opens goes through that alias, so callers decide which
    connection a service talks to by constructing it:

        service = MessageService()                # default database
        service = MessageService(using="replica")  # explicit handle

    Services keep no other state and are cheap to construct per request or
    once per WebSocket connection.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @contextmanager
    def atomic(self) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction on this service's alias.

        If any operation inside the block raises, every change is rolled back
        and the exception propagates unchanged.
        """
        with transaction.atomic(using=self.using):
            yield
