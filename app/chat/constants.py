"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message listing (page sizes)
- Chat creation defaults
- Realtime gateway (group names, close codes, event names)

Page sizes can be overridden via Django settings.
Import example:
    from chat.constants import MESSAGE_CONFIG, GATEWAY_CONFIG, EVENTS
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Listing
    DEFAULT_PAGE_SIZE: Final[int] = getattr(settings, "CHAT_MESSAGE_PAGE_SIZE", 50)
    MAX_PAGE_SIZE: Final[int] = getattr(settings, "CHAT_MESSAGE_MAX_PAGE_SIZE", 200)
    MIN_PAGE_SIZE: Final[int] = 1


# =============================================================================
# Chat Configuration
# =============================================================================


class CHAT_CONFIG:
    """Configuration for chat creation."""

    # Title given to direct chats created implicitly by a first message
    DEFAULT_DIRECT_TITLE: Final[str] = "New Chat"

    # Direct chats hold the creator plus exactly one peer
    DIRECT_CHAT_PEER_COUNT: Final[int] = 1


# =============================================================================
# Gateway Configuration
# =============================================================================


class GATEWAY_CONFIG:
    """Configuration for the WebSocket gateway."""

    # Close code sent before accept when the handshake carries no valid token
    CLOSE_CODE_UNAUTHENTICATED: Final[int] = 4001

    # Channel layer group names
    PRESENCE_GROUP: Final[str] = "presence"
    USER_GROUP_PREFIX: Final[str] = "user_"
    CHAT_GROUP_PREFIX: Final[str] = "chat_"

    # Subprotocol marker: new WebSocket(url, ["jwt", token])
    JWT_SUBPROTOCOL: Final[str] = "jwt"


# =============================================================================
# Event Names
# =============================================================================


class EVENTS:
    """Event names carried in the {"event": ..., "data": ...} envelope."""

    # Client -> server
    MESSAGE_SEND: Final[str] = "message:send"
    RECEIPT_DELIVERED: Final[str] = "receipt:delivered"
    RECEIPT_READ: Final[str] = "receipt:read"
    CHAT_READ_UP_TO: Final[str] = "chat:readUpTo"
    TYPING: Final[str] = "typing"
    CHAT_JOIN: Final[str] = "chat:join"
    CHAT_LEAVE: Final[str] = "chat:leave"

    # Server -> client
    MESSAGE_NEW: Final[str] = "message:new"
    MESSAGE_DELETED: Final[str] = "message:deleted"
    CHAT_NEW: Final[str] = "chat:new"
    USER_ONLINE: Final[str] = "user:online"
    USER_OFFLINE: Final[str] = "user:offline"
    ACK: Final[str] = "ack"
