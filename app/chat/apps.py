"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) and group chats
- Role tiers (owner, admin, member)
- Per-chat message sequence numbers
- Per-recipient delivery and read receipts
- The realtime WebSocket gateway
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
