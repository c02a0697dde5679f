"""
Tests for WebSocket JWT extraction and validation.
"""

import pytest
from asgiref.sync import async_to_sync
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from chat.middleware import (
    get_token_from_header,
    get_token_from_query,
    get_token_from_subprotocol,
    get_user_from_token,
)


class TestTokenExtraction:
    """Where the handshake may carry the token."""

    def test_query_string(self):
        assert get_token_from_query({"query_string": b"token=abc&x=1"}) == "abc"
        assert get_token_from_query({"query_string": b""}) is None

    def test_bearer_header(self):
        scope = {"headers": [(b"host", b"localhost"), (b"Authorization", b"Bearer abc")]}

        assert get_token_from_header(scope) == "abc"
        assert get_token_from_header({"headers": [(b"authorization", b"Basic abc")]}) is None

    def test_subprotocol(self):
        assert get_token_from_subprotocol({"subprotocols": ["jwt", "abc"]}) == "abc"
        assert get_token_from_subprotocol({"subprotocols": ["jwt"]}) is None
        assert get_token_from_subprotocol({"subprotocols": ["graphql-ws", "abc"]}) is None


@pytest.mark.django_db(transaction=True)
class TestUserFromToken:
    """Token validation."""

    def test_valid_token(self, alice):
        user = async_to_sync(get_user_from_token)(str(AccessToken.for_user(alice)))

        assert user == alice

    def test_inactive_user(self, alice):
        token = str(AccessToken.for_user(alice))
        alice.is_active = False
        alice.save(update_fields=["is_active"])

        assert async_to_sync(get_user_from_token)(token).is_anonymous

    def test_refresh_token_rejected(self, alice):
        """
        Only access tokens open a connection.

        Why it matters: a long-lived refresh token leaking through a URL
        must not grant realtime access.
        """
        token = str(RefreshToken.for_user(alice))

        assert async_to_sync(get_user_from_token)(token).is_anonymous

    def test_garbage(self, db):
        assert async_to_sync(get_user_from_token)("garbage").is_anonymous
