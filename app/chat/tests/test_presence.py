"""
Tests for connection bookkeeping and presence flags.
"""

import pytest

from authentication.models import User
from chat.presence import ConnectionRegistry, PresenceService


class TestConnectionRegistry:
    """First/last connection detection."""

    def test_first_and_last_connection(self):
        registry = ConnectionRegistry()

        assert registry.add(1, "phone") is True
        assert registry.add(1, "laptop") is False
        assert registry.channels(1) == {"phone", "laptop"}

        assert registry.remove(1, "phone") is False
        assert registry.is_connected(1)
        assert registry.remove(1, "laptop") is True
        assert not registry.is_connected(1)

    def test_users_are_independent(self):
        registry = ConnectionRegistry()
        registry.add(1, "a")

        assert registry.add(2, "b") is True
        assert registry.remove(2, "b") is True
        assert registry.is_connected(1)

    def test_unknown_connection_is_not_last(self):
        """
        Removing a connection that was never added reports nothing.

        Why it matters: a disconnect after a rejected handshake must not
        mark a still-connected user offline.
        """
        registry = ConnectionRegistry()
        registry.add(1, "a")

        assert registry.remove(1, "ghost") is False
        assert registry.remove(2, "ghost") is False
        assert registry.is_connected(1)

    def test_clear(self):
        registry = ConnectionRegistry()
        registry.add(1, "a")

        registry.clear()

        assert registry.channels(1) == set()
        assert registry.add(1, "a") is True


@pytest.mark.django_db
class TestPresenceService:
    """Online flag and last seen timestamp."""

    def test_online_then_offline(self, alice):
        service = PresenceService()

        online_at = service.set_online(alice.id)
        alice.refresh_from_db()
        assert alice.is_online is True
        assert alice.last_seen_at == online_at

        offline_at = service.set_offline(alice.id)
        alice.refresh_from_db()
        assert alice.is_online is False
        assert alice.last_seen_at == offline_at
        assert offline_at >= online_at

    def test_unknown_user_is_noop(self, db):
        PresenceService().set_online(999999)

        assert not User.objects.filter(is_online=True).exists()
