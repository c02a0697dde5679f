"""
Chat domain errors.

All of them derive from core.exceptions, so the DRF exception handler maps
them to HTTP statuses and the gateway turns them into {"ok": false, "error"}.

    ChatError (400)
        NotMemberError       caller is not a member of the chat
        MissingPeerError     first message to a new chat has no recipient
    ChatNotFoundError (404)
    MessageNotFoundError (404)
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError, NotFoundError


class ChatError(BaseApplicationError):
    """Base class for chat rule violations."""

    default_error_code = "CHAT_ERROR"
    status_code = 400


class NotMemberError(ChatError):
    default_error_code = "NOT_MEMBER"

    def __init__(self, message: str = "Not a member of this chat", **kwargs):
        super().__init__(message, **kwargs)


class MissingPeerError(ChatError):
    default_error_code = "MISSING_PEER"

    def __init__(self, message: str = "Recipient is required to start a chat", **kwargs):
        super().__init__(message, **kwargs)


class ChatNotFoundError(NotFoundError):
    default_error_code = "CHAT_NOT_FOUND"

    def __init__(self, message: str = "Chat not found", **kwargs):
        super().__init__(message, **kwargs)


class MessageNotFoundError(NotFoundError):
    default_error_code = "MESSAGE_NOT_FOUND"

    def __init__(self, message: str = "Message not found", **kwargs):
        super().__init__(message, **kwargs)
