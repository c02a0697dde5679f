"""
Chat system models.

This module defines the message store of the chat backend:

Models:
    Chat: Direct (1:1) or group conversation, client-suppliable UUID
    ChatMember: Membership of a user in a chat with an integer role tier
    Message: Immutable message with a per-chat sequence number
    MessageReceipt: Delivery/read state of one message for one recipient

Design Decisions:
    - Message.seq is contiguous from 1 per chat. It is assigned inside a
      transaction holding a row lock on the parent chat (see
      MessageService.send_message); UniqueConstraint(chat, seq) backstops it.
      Chat.last_seq remembers the highest seq handed out, so deleting the
      newest message never lets its seq be reused.
    - One MessageReceipt per (message, non-sender member) is created at send
      time. Timestamps only ever go from NULL to a value (monotonic merge),
      so a late "delivered" can never undo an earlier "read".
    - Messages are hard-deleted; receipts go with them (CASCADE).
    - Quoted/edited references are SET_NULL so deleting a message never
      deletes the messages that point at it.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel


class MessageType(models.TextChoices):
    """Kind of message content. Media types carry an opaque media_id."""

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    VIDEO = "video", "Video"
    AUDIO = "audio", "Audio"
    FILE = "file", "File"


class DeliveryStatus(models.TextChoices):
    """
    Status of a message from one viewer's perspective.

    SENDING: Advisory status returned by a send when the recipient is not
             known to be connected
    SENT: Persisted, not yet delivered to the recipient(s)
    DELIVERED: Delivered to the recipient (to all recipients for aggregates)
    READ: Read by the recipient (by all recipients for aggregates)
    """

    SENDING = "sending", "Sending"
    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"


class Chat(UUIDPrimaryKeyMixin, BaseModel):
    """
    A direct or group conversation.

    The id may be generated by the client before the chat exists so that the
    first message can reference it (see ChatService.ensure_direct_chat).

    Fields:
        is_group: Group chats allow adding members; direct chats have two
        title: Optional title (defaults to "New Chat" for direct chats)
        description: Optional description
        created_by: Creator, kept as NULL if the account is deleted
        properties: Opaque client-owned JSON
        last_message_at: Time of the newest message, maintained by send
        last_seq: Highest seq ever assigned in the chat, maintained by send
    """

    is_group = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this is a group chat",
    )
    title = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Chat title",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Chat description",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_chats",
        help_text="User who created this chat",
    )
    properties = models.JSONField(
        default=dict,
        blank=True,
        help_text="Opaque client-owned chat properties",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting chat lists)",
    )
    last_seq = models.PositiveIntegerField(
        default=0,
        help_text="Highest seq ever assigned; deleted messages never free their seq",
    )

    class Meta:
        db_table = "chats"
        ordering = ["-last_message_at", "-created_at"]

    def __str__(self) -> str:
        if self.title:
            return f"Chat: {self.title}"
        return f"{'Group' if self.is_group else 'Direct'}({self.pk})"


class ChatMember(BaseModel):
    """
    Membership of a user in a chat.

    Role tiers are integers so they can be compared: OWNER > ADMIN > MEMBER.
    The creator of a chat is OWNER; everybody else joins as MEMBER.
    created_at doubles as the join time.
    """

    class Role(models.IntegerChoices):
        MEMBER = 0, "Member"
        ADMIN = 1, "Admin"
        OWNER = 2, "Owner"

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="members",
        help_text="Chat this membership belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
        help_text="Member user",
    )
    role = models.PositiveSmallIntegerField(
        choices=Role.choices,
        default=Role.MEMBER,
        help_text="Role tier: 0 member, 1 admin, 2 owner",
    )

    class Meta:
        db_table = "chat_members"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["chat", "user"],
                name="unique_chat_member",
            ),
        ]

    def __str__(self) -> str:
        return f"ChatMember(chat={self.chat_id}, user={self.user_id}, role={self.role})"

    @property
    def can_manage_members(self) -> bool:
        return self.role >= self.Role.ADMIN


class Message(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A message in a chat.

    Fields:
        chat: Chat the message belongs to
        sender: Author
        message_type: text, image, video, audio or file
        body: Text content (required for text messages)
        media_id: Opaque reference to uploaded media
        quoted_message: Message being replied to (same chat)
        edit_of: Message this one supersedes
        ephemeral_expires_at: When set, the message is purged after this time
        seq: Per-chat sequence number, contiguous from 1
        metadata: Opaque client JSON (``to`` and ``name`` are read when a
                  send has to create the direct chat first)
        server_received_at: When the server accepted the message
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Chat this message belongs to",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of content",
    )
    body = models.TextField(
        null=True,
        blank=True,
        help_text="Text content",
    )
    media_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="Opaque reference to uploaded media",
    )
    quoted_message = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quoted_by",
        help_text="Message this one replies to",
    )
    edit_of = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="edits",
        help_text="Message this one supersedes",
    )
    ephemeral_expires_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Purge time for disappearing messages",
    )
    seq = models.PositiveIntegerField(
        help_text="Per-chat sequence number, contiguous from 1",
    )
    server_received_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the server accepted the message",
    )

    class Meta:
        db_table = "messages"
        ordering = ["chat", "seq"]
        constraints = [
            models.UniqueConstraint(
                fields=["chat", "seq"],
                name="unique_message_seq_per_chat",
            ),
            models.CheckConstraint(
                condition=Q(seq__gte=1),
                name="message_seq_positive",
            ),
        ]
        indexes = [
            models.Index(
                fields=["chat", "-created_at"],
                name="messages_chat_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Message(chat={self.chat_id}, seq={self.seq}, sender={self.sender_id})"


class MessageReceipt(BaseModel):
    """
    Delivery and read state of a message for one recipient.

    Timestamps are only ever set when NULL. mark_read also sets delivered_at,
    so read_at never exists without delivered_at.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="receipts",
        help_text="Message this receipt tracks",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_receipts",
        help_text="Recipient user",
    )
    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="First time the message reached one of the recipient's devices",
    )
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="First time the recipient read the message",
    )

    class Meta:
        db_table = "message_receipts"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "recipient"],
                name="unique_message_receipt",
            ),
        ]
        indexes = [
            # Pending deliveries flipped when a user connects
            models.Index(
                fields=["recipient", "delivered_at"],
                name="receipts_recipient_deliv_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Receipt(message={self.message_id}, recipient={self.recipient_id})"

    @property
    def status(self) -> str:
        if self.read_at:
            return DeliveryStatus.READ
        if self.delivered_at:
            return DeliveryStatus.DELIVERED
        return DeliveryStatus.SENT
