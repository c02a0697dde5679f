"""
Test configuration and fixtures for chat tests.

This module provides:
- Users: alice, bob, carol and an outsider
- Chats: a direct chat (alice, bob) and a group chat (alice, bob, carol)
- API client helpers for authenticated requests
- A helper to send messages through MessageService
- A recorder for channel-layer fan-out

Usage:
    def test_example(direct_chat, client_for, alice):
        response = client_for(alice).get(f"/api/v1/chats/{direct_chat.id}")
        assert response.status_code == 200
"""

from unittest.mock import patch

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.services import ChatService, MessageService
from chat.tests.factories import ChatFactory, GroupChatFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    """Chat owner in the default fixtures."""
    return UserFactory(name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(name="Carol")


@pytest.fixture
def outsider(db):
    """User who belongs to none of the fixture chats."""
    return UserFactory(name="Mallory")


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def direct_chat(alice, bob):
    """Direct chat owned by alice with bob as the peer."""
    return ChatFactory(created_by=alice, members=[bob])


@pytest.fixture
def group_chat(alice, bob, carol):
    """Group chat owned by alice with bob and carol as members."""
    return GroupChatFactory(created_by=alice, members=[bob, carol], title="Team")


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def chat_service(db):
    return ChatService()


@pytest.fixture
def message_service(db):
    return MessageService()


@pytest.fixture
def send(message_service):
    """
    Send a text message through the service.

    Usage:
        message = send(direct_chat, alice, "hi")
    """

    def _send(chat, sender, body="hello", **kwargs):
        return message_service.send_message(
            chat_id=chat.id,
            sender_id=sender.id,
            message_type=kwargs.pop("message_type", "text"),
            body=body,
            **kwargs,
        ).message

    return _send


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for(db):
    """
    Factory for API clients authenticated with a bearer JWT.

    Usage:
        response = client_for(alice).get("/api/v1/chats/user/1")
    """

    def _make_client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
        return client

    return _make_client


# =============================================================================
# Fan-out Fixtures
# =============================================================================


@pytest.fixture
def broadcasts():
    """
    Record sync fan-out instead of touching the channel layer.

    Every call is kept as (group, event, data, options).

    Usage:
        response = client_for(alice).post("/api/v1/messages", {...}, format="json")
        assert ("chat_<id>", "message:new") in [(g, e) for g, e, *_ in broadcasts]
    """
    sent = []

    def _record(group, event, data, **options):
        sent.append((group, event, data, options))

    with patch("chat.broadcast.send_to_group_sync", side_effect=_record):
        yield sent
