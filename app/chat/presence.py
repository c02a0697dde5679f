"""
Connection bookkeeping and presence flags.

ConnectionRegistry:
    Process-local map of user id -> channel names of that user's open
    gateway connections. It only answers "is this the first/last connection
    of the user in this process". Every mutation is synchronous, so it is
    safe on the single event loop that runs the consumers.

PresenceService:
    Persists User.is_online / last_seen_at when a user's first connection
    opens and when the last one closes.

Usage:
    registry = ConnectionRegistry()
    if registry.add(user.id, channel_name):
        PresenceService().set_online(user.id)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from django.utils import timezone

from authentication.models import User
from core.services import BaseService

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """User id -> set of channel names."""

    def __init__(self):
        self._connections: dict[int, set[str]] = defaultdict(set)

    def add(self, user_id: int, channel_name: str) -> bool:
        """Register a connection. Returns True if it is the user's first."""
        channels = self._connections[user_id]
        first = not channels
        channels.add(channel_name)
        return first

    def remove(self, user_id: int, channel_name: str) -> bool:
        """Forget a connection. Returns True if it was the user's last."""
        channels = self._connections.get(user_id)
        if not channels or channel_name not in channels:
            return False
        channels.discard(channel_name)
        if channels:
            return False
        del self._connections[user_id]
        return True

    def channels(self, user_id: int) -> set[str]:
        return set(self._connections.get(user_id, ()))

    def is_connected(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def clear(self) -> None:
        self._connections.clear()


class PresenceService(BaseService):
    """Online flag and last-seen timestamp of users."""

    def _set(self, user_id: int, online: bool) -> datetime:
        now = timezone.now()
        User.objects.using(self.using).filter(id=user_id).update(
            is_online=online,
            last_seen_at=now,
            updated_at=now,
        )
        self.get_logger().info(f"User {user_id} is {'online' if online else 'offline'}")
        return now

    def set_online(self, user_id: int) -> datetime:
        return self._set(user_id, online=True)

    def set_offline(self, user_id: int) -> datetime:
        return self._set(user_id, online=False)
