"""
URL configuration for chat API.

URL Structure:
    Chats:
        /chats                                POST
        /chats/user/{user_id}                 GET
        /chats/unread/{user_id}/{chat_id}     GET
        /chats/{chat_id}                      GET
        /chats/{chat_id}/members              POST

    Messages:
        /messages                             POST
        /messages/{chat_id}                   GET  (history)
        /messages/{message_id}                DELETE
        /messages/{message_id}/delivered      POST
        /messages/{message_id}/read           POST
        /messages/{chat_id}/read-up-to        POST

Paths have no trailing slash. All URLs are prefixed with /api/v1/ in the
main URL configuration.
"""

from django.urls import path

from chat.views import (
    ChatCreateView,
    ChatDetailView,
    ChatMembersView,
    ChatReadUpToView,
    ChatUnreadCountView,
    MessageCreateView,
    MessageDeliveredView,
    MessageReadView,
    MessageResourceView,
    UserChatsView,
)

app_name = "chat"

urlpatterns = [
    # Chats
    path("chats", ChatCreateView.as_view(), name="chat-create"),
    path("chats/user/<int:user_id>", UserChatsView.as_view(), name="user-chats"),
    path(
        "chats/unread/<int:user_id>/<uuid:chat_id>",
        ChatUnreadCountView.as_view(),
        name="chat-unread",
    ),
    path("chats/<uuid:chat_id>", ChatDetailView.as_view(), name="chat-detail"),
    path("chats/<uuid:chat_id>/members", ChatMembersView.as_view(), name="chat-members"),
    # Messages
    path("messages", MessageCreateView.as_view(), name="message-create"),
    path("messages/<uuid:object_id>", MessageResourceView.as_view(), name="message-resource"),
    path(
        "messages/<uuid:message_id>/delivered",
        MessageDeliveredView.as_view(),
        name="message-delivered",
    ),
    path("messages/<uuid:message_id>/read", MessageReadView.as_view(), name="message-read"),
    path(
        "messages/<uuid:chat_id>/read-up-to",
        ChatReadUpToView.as_view(),
        name="chat-read-up-to",
    ),
]
