"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message serializers (payload, history, create)
- Chat serializers (detail, list, create, add members)
- Receipt input serializers

Serializer Hierarchy:
    MessageSerializer: Message payload (REST responses and gateway events)
    MessageHistorySerializer: Adds sender info and per-viewer status
    MessageCreateSerializer: Send new message

    ChatMemberSerializer: Member with user info and role
    ChatSerializer: Chat with members
    ChatListSerializer: Adds last message and unread count
    ChatCreateSerializer / AddMembersSerializer: Input

    MessageHistoryQuerySerializer / ReadUpToSerializer: Query and body input

Design Decisions:
    - Every id and timestamp is rendered as a string, so serializer output
      can go straight into the channel layer and send_json
    - Wire names that clients send in camelCase (uptoSeq, beforeSeq) are
      declared as such
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import serializers

from chat.models import Chat, ChatMember, Message, MessageType

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """Message payload used for message:new, acks and REST responses."""

    chat_id = serializers.UUIDField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True)
    quoted_message_id = serializers.UUIDField(read_only=True, allow_null=True)
    edit_of_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "chat_id",
            "sender_id",
            "message_type",
            "body",
            "media_id",
            "quoted_message_id",
            "edit_of_id",
            "ephemeral_expires_at",
            "seq",
            "metadata",
            "created_at",
            "server_received_at",
        ]
        read_only_fields = fields


class MessageHistorySerializer(MessageSerializer):
    """
    Message as seen by one viewer in the history endpoint.

    Expects the attributes set by MessageService.get_chat_messages:
    my_delivered_at, my_read_at, status and receipt_map. ``receipts`` is only
    present on the viewer's own messages.
    """

    sender_name = serializers.CharField(source="sender.name", read_only=True)
    sender_avatar = serializers.CharField(
        source="sender.profile_picture", read_only=True, allow_null=True
    )
    my_delivered_at = serializers.DateTimeField(read_only=True, allow_null=True)
    my_read_at = serializers.DateTimeField(read_only=True, allow_null=True)
    status = serializers.CharField(read_only=True)
    receipts = serializers.SerializerMethodField(
        help_text="recipient id -> {delivered_at, read_at}, own messages only"
    )

    class Meta(MessageSerializer.Meta):
        fields = MessageSerializer.Meta.fields + [
            "sender_name",
            "sender_avatar",
            "my_delivered_at",
            "my_read_at",
            "status",
            "receipts",
        ]
        read_only_fields = fields

    def get_receipts(self, obj: Message) -> dict[str, dict[str, str | None]] | None:
        receipt_map = getattr(obj, "receipt_map", None)
        if receipt_map is None:
            return None
        timestamp = serializers.DateTimeField()
        return {
            str(recipient_id): {
                "delivered_at": timestamp.to_representation(receipt.delivered_at)
                if receipt.delivered_at
                else None,
                "read_at": timestamp.to_representation(receipt.read_at)
                if receipt.read_at
                else None,
            }
            for recipient_id, receipt in receipt_map.items()
        }

    def to_representation(self, instance: Message) -> dict[str, Any]:
        data = super().to_representation(instance)
        if data.get("receipts") is None:
            data.pop("receipts", None)
        return data


class MessageCreateSerializer(serializers.Serializer):
    """
    Input for POST /messages.

    chat_id may be omitted or unknown when metadata.to names the peer of a
    new direct chat.
    """

    chat_id = serializers.UUIDField(required=False, allow_null=True)
    message_id = serializers.UUIDField(required=False, allow_null=True)
    message_type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    body = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        trim_whitespace=False,
    )
    media_id = serializers.UUIDField(required=False, allow_null=True)
    quoted_message_id = serializers.UUIDField(required=False, allow_null=True)
    edit_of_id = serializers.UUIDField(required=False, allow_null=True)
    ephemeral_expires_at = serializers.DateTimeField(required=False, allow_null=True)
    metadata = serializers.JSONField(required=False, default=dict)

    def validate_metadata(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError("metadata must be an object.")
        return value


class SendMessageResponseSerializer(serializers.Serializer):
    """Response of POST /messages."""

    success = serializers.BooleanField()
    message = MessageSerializer()
    status = serializers.CharField()


class MessageHistoryQuerySerializer(serializers.Serializer):
    """Query of GET /messages/{chat_id}. limit is clamped by the service."""

    limit = serializers.IntegerField(required=False)
    beforeSeq = serializers.IntegerField(required=False, min_value=1)


class ReadUpToSerializer(serializers.Serializer):
    """Body of POST /messages/{chat_id}/read-up-to."""

    uptoSeq = serializers.IntegerField(min_value=0)


class UpdatedCountSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    updated = serializers.IntegerField()


# =============================================================================
# Chat Serializers
# =============================================================================


class ChatMemberSerializer(serializers.ModelSerializer):
    """Member of a chat, flattened with the user's public fields."""

    id = serializers.IntegerField(source="user.id", read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)
    profile_picture = serializers.CharField(
        source="user.profile_picture", read_only=True, allow_null=True
    )
    is_online = serializers.BooleanField(source="user.is_online", read_only=True)
    last_seen_at = serializers.DateTimeField(
        source="user.last_seen_at", read_only=True, allow_null=True
    )

    class Meta:
        model = ChatMember
        fields = [
            "id",
            "name",
            "phone_number",
            "profile_picture",
            "is_online",
            "last_seen_at",
            "role",
        ]
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer):
    """Chat with its members (prefetch ``members__user``)."""

    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    members = ChatMemberSerializer(many=True, read_only=True)

    class Meta:
        model = Chat
        fields = [
            "id",
            "is_group",
            "title",
            "description",
            "created_by_id",
            "properties",
            "last_message_at",
            "created_at",
            "updated_at",
            "members",
        ]
        read_only_fields = fields


class ChatListSerializer(ChatSerializer):
    """
    Chat list entry.

    Expects ``last_message`` and ``unread_count`` attributes set by
    ChatService.get_user_chats.
    """

    last_message = serializers.SerializerMethodField()
    unread_count = serializers.IntegerField(read_only=True)

    class Meta(ChatSerializer.Meta):
        fields = ChatSerializer.Meta.fields + ["last_message", "unread_count"]
        read_only_fields = fields

    def get_last_message(self, obj: Chat) -> dict[str, Any] | None:
        message = getattr(obj, "last_message", None)
        if message is None:
            return None
        return MessageSerializer(message).data


class ChatCreateSerializer(serializers.Serializer):
    """
    Input for POST /chats.

    The creator is the authenticated user and becomes the owner. A direct
    chat (is_group false) lists exactly one other member.
    """

    chat_id = serializers.UUIDField(required=False, allow_null=True)
    is_group = serializers.BooleanField(default=False)
    title = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    member_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
    properties = serializers.JSONField(required=False, default=dict)

    def validate_properties(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError("properties must be an object.")
        return value


class AddMembersSerializer(serializers.Serializer):
    """Input for POST /chats/{chat_id}/members."""

    member_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()
