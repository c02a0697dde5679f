"""
Tests for the API error envelope.

The handler is called directly with the exceptions views raise, so every
mapping is checked without routing a request.
"""

from django.db import DataError, IntegrityError
from rest_framework import exceptions as drf_exceptions
from rest_framework import status

from core.exception_handler import api_exception_handler, describe_integrity_error
from core.exceptions import ConflictError, NotFoundError, ValidationError


def _handle(exc):
    return api_exception_handler(exc, {"view": None})


class TestApplicationErrors:
    """BaseApplicationError subclasses."""

    def test_status_and_envelope(self):
        response = _handle(NotFoundError("Chat not found", error_code="CHAT_NOT_FOUND"))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {
            "success": False,
            "msg": "Chat not found",
            "error_code": "CHAT_NOT_FOUND",
        }

    def test_details_included(self):
        response = _handle(
            ConflictError("Message already exists", details={"message_id": "abc"})
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "CONFLICT"
        assert response.data["details"] == {"message_id": "abc"}

    def test_validation_error_default_code(self):
        response = _handle(ValidationError("Text messages need a body"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"


class TestFrameworkErrors:
    """Errors raised by DRF itself."""

    def test_serializer_errors_flattened(self):
        """
        Nested serializer errors become dotted field names.

        Why it matters: clients highlight form fields by these keys.
        """
        exc = drf_exceptions.ValidationError(
            {"uptoSeq": ["Ensure this value is greater than or equal to 0."], "metadata": {"to": ["Invalid."]}}
        )

        response = _handle(exc)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "VALIDATION_ERROR"
        assert response.data["errors"] == {
            "uptoSeq": ["Ensure this value is greater than or equal to 0."],
            "metadata.to": ["Invalid."],
        }
        assert response.data["msg"].startswith("uptoSeq: Ensure")

    def test_not_authenticated(self):
        response = _handle(drf_exceptions.NotAuthenticated())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data["success"] is False
        assert response.data["error_code"] == "NOT_AUTHENTICATED"

    def test_permission_denied_message(self):
        response = _handle(drf_exceptions.PermissionDenied("You can only access your own chats."))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["msg"] == "You can only access your own chats."


class TestDatabaseErrors:
    """IntegrityError and DataError mapping."""

    def test_sqlite_unique_violation(self):
        exc = IntegrityError("UNIQUE constraint failed: messages.chat_id, messages.seq")

        code, msg, error_code = describe_integrity_error(exc)

        assert code == status.HTTP_400_BAD_REQUEST
        assert error_code == "DUPLICATE_VALUE"
        assert "messages.chat_id, messages.seq" in msg

    def test_foreign_key_violation(self):
        response = _handle(IntegrityError("FOREIGN KEY constraint failed"))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "REFERENCE_NOT_FOUND"

    def test_data_error(self):
        response = _handle(DataError("value too long"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_TYPE"

    def test_unexpected_error(self):
        response = _handle(RuntimeError("boom"))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == "SERVER_ERROR"
        assert "boom" not in response.data["msg"]
