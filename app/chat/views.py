"""
REST API views for chats and messages.

Endpoints (prefixed with /api/v1):
    POST   /chats                                  Create chat
    GET    /chats/user/{user_id}                   Caller's chat list
    GET    /chats/unread/{user_id}/{chat_id}       Caller's unread count
    GET    /chats/{chat_id}                        Chat details
    POST   /chats/{chat_id}/members                Add members (owner/admin)
    POST   /messages                               Send message
    GET    /messages/{chat_id}?limit=&beforeSeq=   Chat history
    DELETE /messages/{message_id}                  Delete own message
    POST   /messages/{message_id}/delivered        Delivery receipt
    POST   /messages/{message_id}/read             Read receipt
    POST   /messages/{chat_id}/read-up-to          Bulk read receipt

Design Decisions:
    - Views validate input, call ChatService/MessageService and fan out
      through chat.broadcast exactly like the gateway does
    - Domain errors propagate to core.exception_handler
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat import broadcast
from chat.constants import EVENTS
from chat.exceptions import ChatNotFoundError, MessageNotFoundError
from chat.permissions import IsPathUser
from chat.serializers import (
    AddMembersSerializer,
    ChatCreateSerializer,
    ChatListSerializer,
    ChatMemberSerializer,
    ChatSerializer,
    MessageCreateSerializer,
    MessageHistoryQuerySerializer,
    MessageHistorySerializer,
    MessageSerializer,
    ReadUpToSerializer,
    SendMessageResponseSerializer,
    UnreadCountSerializer,
    UpdatedCountSerializer,
)
from chat.services import ChatService, MessageService

logger = logging.getLogger(__name__)


# =============================================================================
# Chats
# =============================================================================


class ChatCreateView(APIView):
    """POST: Create a chat owned by the caller and announce it to the members."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Create chat",
        tags=["Chats"],
        request=ChatCreateSerializer,
        responses={201: ChatSerializer},
    )
    def post(self, request):
        serializer = ChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = ChatService()
        chat = service.create_chat(creator_id=request.user.id, **serializer.validated_data)

        data = ChatSerializer(service.get_chat_details(chat.id)).data
        broadcast.announce_chat_sync(data, [member["id"] for member in data["members"]])
        return Response({"success": True, "data": data}, status=status.HTTP_201_CREATED)


class UserChatsView(APIView):
    """GET: Chats of the caller, most recently active first."""

    permission_classes = [IsAuthenticated, IsPathUser]

    @extend_schema(
        summary="List user chats",
        tags=["Chats"],
        responses={200: ChatListSerializer(many=True)},
    )
    def get(self, request, user_id):
        chats = ChatService().get_user_chats(user_id)
        return Response({"success": True, "data": ChatListSerializer(chats, many=True).data})


class ChatUnreadCountView(APIView):
    """GET: Unread messages of the caller in one chat."""

    permission_classes = [IsAuthenticated, IsPathUser]

    @extend_schema(
        summary="Unread count",
        tags=["Chats"],
        responses={200: UnreadCountSerializer},
    )
    def get(self, request, user_id, chat_id):
        count = ChatService().get_chat_unread_count(chat_id, user_id)
        return Response({"success": True, "unread_count": count})


class ChatDetailView(APIView):
    """GET: Chat with members. Members only."""

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Chat details", tags=["Chats"], responses={200: ChatSerializer})
    def get(self, request, chat_id):
        service = ChatService()
        chat = service.get_chat_details(chat_id)
        if chat is None:
            raise ChatNotFoundError()
        service.require_member(chat_id, request.user.id)
        return Response({"success": True, "data": ChatSerializer(chat).data})


class ChatMembersView(APIView):
    """POST: Add members to a group chat (owner/admin)."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Add members",
        tags=["Chats"],
        request=AddMembersSerializer,
        responses={201: ChatMemberSerializer(many=True)},
    )
    def post(self, request, chat_id):
        serializer = AddMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = ChatService()
        added = service.add_members(
            chat_id=chat_id,
            actor_id=request.user.id,
            member_ids=serializer.validated_data["member_ids"],
        )

        chat = service.get_chat_details(chat_id)
        added_ids = {member.user_id for member in added}
        if added_ids:
            broadcast.announce_chat_sync(ChatSerializer(chat).data, added_ids)

        new_members = [member for member in chat.members.all() if member.user_id in added_ids]
        return Response(
            {"success": True, "data": ChatMemberSerializer(new_members, many=True).data},
            status=status.HTTP_201_CREATED,
        )


# =============================================================================
# Messages
# =============================================================================


class MessageCreateView(APIView):
    """
    POST: Send a message.

    An unknown or missing chat_id with metadata.to opens a direct chat with
    that user first; the new chat is announced before the message.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Send message",
        tags=["Messages"],
        request=MessageCreateSerializer,
        responses={201: SendMessageResponseSerializer},
    )
    def post(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        service = MessageService()
        sent, created = service.send_to_chat(
            sender_id=request.user.id, chat_id=data.pop("chat_id", None), **data
        )
        chat_id = sent.message.chat_id
        payload = MessageSerializer(sent.message).data

        if created:
            chat_data = ChatSerializer(service.chats.get_chat_details(chat_id)).data
            broadcast.announce_chat_sync(
                chat_data,
                [member["id"] for member in chat_data["members"]],
                message_payload=payload,
            )
        else:
            broadcast.send_to_group_sync(broadcast.chat_group(chat_id), EVENTS.MESSAGE_NEW, payload)

        return Response(
            {"success": True, "message": payload, "status": sent.status},
            status=status.HTTP_201_CREATED,
        )


class MessageResourceView(APIView):
    """
    The /messages/{id} path is shared by two resources:

    GET: History of the chat {id} for a member
    DELETE: Delete the message {id}, sender only
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Chat history",
        tags=["Messages"],
        parameters=[
            OpenApiParameter("limit", int, description="Page size (1-200, default 50)"),
            OpenApiParameter("beforeSeq", int, description="Only messages with a lower seq"),
        ],
        responses={200: MessageHistorySerializer(many=True)},
    )
    def get(self, request, object_id):
        query = MessageHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        messages = MessageService().get_chat_messages(
            chat_id=object_id,
            requester_id=request.user.id,
            limit=query.validated_data.get("limit"),
            before_seq=query.validated_data.get("beforeSeq"),
        )
        return Response(
            {"success": True, "data": MessageHistorySerializer(messages, many=True).data}
        )

    @extend_schema(summary="Delete message", tags=["Messages"], responses={200: None})
    def delete(self, request, object_id):
        deleted = MessageService().delete_message(object_id, request.user.id)
        if deleted is None:
            raise MessageNotFoundError()

        broadcast.announce_message_deleted(deleted)
        return Response({"success": True, "data": broadcast.deleted_payload(deleted)})


class _ReceiptView(APIView):
    """Marks one receipt of the caller through MessageService.<mark_method>."""

    permission_classes = [IsAuthenticated]
    mark_method: str = ""
    event: str = ""

    def post(self, request, message_id):
        service = MessageService()
        updated = getattr(service, self.mark_method)(message_id, request.user.id)

        if updated:
            meta = service.get_message_meta(message_id)
            if meta is not None:
                broadcast.send_to_group_sync(
                    broadcast.user_group(meta.sender_id),
                    self.event,
                    broadcast.receipt_payload(meta, request.user.id),
                )
        return Response({"success": True, "updated": updated})


@extend_schema_view(
    post=extend_schema(
        summary="Mark delivered",
        tags=["Messages"],
        request=None,
        responses={200: UpdatedCountSerializer},
    ),
)
class MessageDeliveredView(_ReceiptView):
    """POST: Mark a message delivered to the caller; notifies the sender."""

    mark_method = "mark_delivered"
    event = EVENTS.RECEIPT_DELIVERED


@extend_schema_view(
    post=extend_schema(
        summary="Mark read",
        tags=["Messages"],
        request=None,
        responses={200: UpdatedCountSerializer},
    ),
)
class MessageReadView(_ReceiptView):
    """POST: Mark a message read by the caller; notifies the sender."""

    mark_method = "mark_read"
    event = EVENTS.RECEIPT_READ


class ChatReadUpToView(APIView):
    """POST: Mark everything up to uptoSeq as read; notifies the other members."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Read up to",
        tags=["Messages"],
        request=ReadUpToSerializer,
        responses={200: UpdatedCountSerializer},
    )
    def post(self, request, chat_id):
        serializer = ReadUpToSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        upto_seq = serializer.validated_data["uptoSeq"]

        service = MessageService()
        updated = service.mark_chat_read_up_to(chat_id, upto_seq, request.user.id)

        payload = broadcast.read_up_to_payload(chat_id, request.user.id, upto_seq)
        others = [uid for uid in service.chats.get_member_ids(chat_id) if uid != request.user.id]
        broadcast.send_to_users_sync(others, EVENTS.CHAT_READ_UP_TO, payload)
        return Response({"success": True, "updated": updated})
