"""
DRF exception handler rendering every error as the API error envelope.

Envelope:
    {
        "success": false,
        "msg": "Human readable message",
        "error_code": "MACHINE_CODE",
        "errors": {"field": ["message", ...]}     # validation only
    }

Mapping:
    BaseApplicationError       -> status_code of the exception class
    DRF ValidationError        -> 400 with per-field messages
    DRF auth/permission/404    -> status chosen by DRF (401/403/404/405/429)
    IntegrityError             -> unique 400, not-null 400, foreign key 404
    DataError                  -> 400 (value does not fit the column type)
    anything else              -> 500, logged with traceback

Configured in settings:
    REST_FRAMEWORK["EXCEPTION_HANDLER"] = "core.exception_handler.api_exception_handler"
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import DataError, IntegrityError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
NOT_NULL_VIOLATION = "23502"
FOREIGN_KEY_VIOLATION = "23503"


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """Convert any exception raised in a DRF view into the error envelope."""
    if isinstance(exc, BaseApplicationError):
        set_rollback()
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, IntegrityError):
        set_rollback()
        status_code, msg, error_code = describe_integrity_error(exc)
        logger.info(f"Integrity error mapped to {status_code}: {exc}")
        return Response(_envelope(msg, error_code), status=status_code)

    if isinstance(exc, DataError):
        set_rollback()
        logger.info(f"Data error mapped to 400: {exc}")
        return Response(
            _envelope("Invalid value type for parameter", "INVALID_TYPE"),
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is None:
        set_rollback()
        view = context.get("view")
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}"
        )
        return Response(
            _envelope("Something went wrong, try again later", "SERVER_ERROR"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, drf_exceptions.ValidationError):
        errors = _flatten_validation_errors(exc.detail)
        msg = ", ".join(
            f"{field}: {messages[0]}" if field != "non_field_errors" else messages[0]
            for field, messages in errors.items()
        )
        response.data = _envelope(msg or "Invalid input", "VALIDATION_ERROR")
        response.data["errors"] = errors
        return response

    response.data = _envelope(_detail_message(exc), _error_code(exc))
    return response


def describe_integrity_error(exc: IntegrityError) -> tuple[int, str, str]:
    """
    Derive status, message and error code from a constraint violation.

    Uses the PostgreSQL diagnostics exposed by psycopg when available and
    falls back to the message text (SQLite reports "UNIQUE constraint failed:
    table.column").
    """
    cause = exc.__cause__
    sqlstate = getattr(cause, "sqlstate", None)
    diag = getattr(cause, "diag", None)
    text = str(exc)
    lowered = text.lower()

    if sqlstate == UNIQUE_VIOLATION or "unique constraint" in lowered:
        target = getattr(diag, "constraint_name", None) or _sqlite_target(text)
        msg = "Duplicate value entered"
        if target:
            msg = f"Duplicate value entered for {target}, please choose another value"
        return status.HTTP_400_BAD_REQUEST, msg, "DUPLICATE_VALUE"

    if sqlstate == NOT_NULL_VIOLATION or "not null constraint" in lowered:
        column = getattr(diag, "column_name", None) or _sqlite_target(text)
        msg = f"Missing required field: {column}" if column else "Missing required field"
        return status.HTTP_400_BAD_REQUEST, msg, "MISSING_FIELD"

    if sqlstate == FOREIGN_KEY_VIOLATION or "foreign key constraint" in lowered:
        detail = getattr(diag, "message_detail", None)
        msg = f"Referenced record not found: {detail}" if detail else "Referenced record not found"
        return status.HTTP_404_NOT_FOUND, msg, "REFERENCE_NOT_FOUND"

    return status.HTTP_400_BAD_REQUEST, "Constraint violation", "CONSTRAINT_VIOLATION"


def _sqlite_target(text: str) -> str | None:
    # "UNIQUE constraint failed: users.phone_number"
    _, sep, target = text.partition("failed:")
    if not sep:
        return None
    return target.strip() or None


def _envelope(msg: str, error_code: str) -> dict[str, Any]:
    return {"success": False, "msg": msg, "error_code": error_code}


def _flatten_validation_errors(detail: Any, prefix: str = "") -> dict[str, list[str]]:
    """Flatten nested serializer errors into {"field.sub": [messages]}."""
    if isinstance(detail, dict):
        errors: dict[str, list[str]] = {}
        for key, value in detail.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            errors.update(_flatten_validation_errors(value, name))
        return errors

    if isinstance(detail, list):
        if all(not isinstance(item, (dict, list)) for item in detail):
            return {prefix or "non_field_errors": [str(item) for item in detail]}
        errors = {}
        for index, item in enumerate(detail):
            errors.update(_flatten_validation_errors(item, f"{prefix}[{index}]"))
        return errors

    return {prefix or "non_field_errors": [str(detail)]}


def _detail_message(exc: Exception) -> str:
    detail = getattr(exc, "detail", None)
    # simplejwt wraps token errors as {"detail": ..., "code": ..., "messages": [...]}
    if isinstance(detail, dict):
        detail = detail.get("detail", detail)
    if isinstance(detail, list) and detail:
        detail = detail[0]
    return str(detail) if detail else str(exc)


def _error_code(exc: Exception) -> str:
    codes = exc.get_codes() if isinstance(exc, drf_exceptions.APIException) else None
    if isinstance(codes, dict):
        codes = codes.get("code") or codes.get("detail")
    if isinstance(codes, str):
        return codes.upper()
    return exc.__class__.__name__.upper()
