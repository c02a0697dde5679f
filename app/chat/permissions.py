"""
Permission classes for chat API.

Membership and role checks live in ChatService because the gateway needs
them too; the classes here only cover HTTP-specific rules.

- IsPathUser: The user id in the URL is the caller
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsPathUser(permissions.BasePermission):
    """
    Allows access only when the ``user_id`` URL kwarg is the caller.

    Used by the per-user chat list and unread count endpoints.
    """

    message = "You can only access your own chats."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user_id = view.kwargs.get("user_id")
        return (
            request.user is not None
            and request.user.is_authenticated
            and user_id is not None
            and int(user_id) == request.user.id
        )
