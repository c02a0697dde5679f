"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on chats, memberships, messages and receipts. The REST views,
the WebSocket gateway and the Celery tasks all go through these services.

Services:
    ChatService: Chat lifecycle (create, direct-chat resolution, members, listings)
    MessageService: Message operations (send, receipts, history, delete, purge)

Design Principles:
    - Services are instances bound to a database alias (BaseService.using)
    - Rule violations raise chat.exceptions / core.exceptions
    - Writes that touch several tables run in a single transaction
    - Fan-out is the caller's job (see chat.broadcast)

Usage:
    from chat.services import ChatService, MessageService

    chat = ChatService().create_chat(
        creator_id=alice.id,
        is_group=True,
        title="Project Team",
        member_ids=[bob.id, carol.id],
    )

    sent = MessageService().send_message(
        chat_id=chat.id,
        sender_id=alice.id,
        message_type="text",
        body="Hello everyone!",
    )
    sent.message.seq   # 1
    sent.status        # "sending" (group chats never report "delivered")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from django.db import DEFAULT_DB_ALIAS, IntegrityError
from django.db.models import Count, Exists, Max, OuterRef, Prefetch, Q, Subquery, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from authentication.models import User
from chat.constants import CHAT_CONFIG, MESSAGE_CONFIG
from chat.exceptions import (
    ChatNotFoundError,
    MessageNotFoundError,
    MissingPeerError,
    NotMemberError,
)
from chat.models import (
    Chat,
    ChatMember,
    DeliveryStatus,
    Message,
    MessageReceipt,
    MessageType,
)
from core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from typing import Any


@dataclass(frozen=True)
class SentMessage:
    """Result of a send: the stored message and the advisory status."""

    message: Message
    status: str


@dataclass(frozen=True)
class MessageMeta:
    """Routing information for receipt notifications."""

    id: UUID
    chat_id: UUID
    sender_id: int
    seq: int


@dataclass(frozen=True)
class DeletedMessage:
    """Identity of a hard-deleted message, used for message:deleted events."""

    id: UUID
    chat_id: UUID
    seq: int


def _distinct_ids(ids: Iterable[Any] | None, exclude: Any = None) -> list[Any]:
    """Drop duplicates and ``exclude`` while keeping the caller's order."""
    result: list[Any] = []
    for value in ids or ():
        if value is None or value == exclude or value in result:
            continue
        result.append(value)
    return result


def _coerce_user_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Invalid recipient", error_code="INVALID_PEER")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid recipient", error_code="INVALID_PEER") from None


def aggregate_status(receipts: Iterable[MessageReceipt]) -> str:
    """
    Sender-side status over all recipients.

    read when every recipient read, delivered when every recipient received,
    otherwise sent. A message without recipients is sent.
    """
    receipts = list(receipts)
    if not receipts:
        return DeliveryStatus.SENT
    if all(receipt.read_at for receipt in receipts):
        return DeliveryStatus.READ
    if all(receipt.delivered_at for receipt in receipts):
        return DeliveryStatus.DELIVERED
    return DeliveryStatus.SENT


class ChatService(BaseService):
    """
    Service for chat lifecycle and membership queries.

    Methods:
        create_chat: Create a chat with its initial members
        ensure_direct_chat: Find or create the direct chat between two users
        ensure_chat_for_message: Resolve the target chat of a first message
        add_members: Add members to a group chat
        get_user_chats: Chat list with members, last message and unread count
        get_chat_unread_count: Unread messages of one chat
        get_chat_details: Chat with members
        is_member / require_member: Membership checks
        get_user_chat_ids / get_member_ids: Id listings for room management
    """

    def _chats(self):
        return Chat.objects.using(self.using)

    def _members(self):
        return ChatMember.objects.using(self.using)

    def _missing_users(self, user_ids: list[int]) -> list[int]:
        found = set(
            User.objects.using(self.using).filter(id__in=user_ids).values_list("id", flat=True)
        )
        return [user_id for user_id in user_ids if user_id not in found]

    def create_chat(
        self,
        creator_id: int,
        chat_id: UUID | None = None,
        is_group: bool = False,
        title: str | None = None,
        description: str | None = None,
        member_ids: Iterable[int] | None = None,
        properties: dict[str, Any] | None = None,
    ) -> Chat:
        """
        Create a chat together with its initial membership.

        The creator becomes OWNER; every other distinct member joins as
        MEMBER. The creator is skipped if listed in member_ids. The chat and
        all memberships are written in one transaction.

        Args:
            creator_id: User creating the chat
            chat_id: Optional client-generated id
            is_group: Group chat flag
            title: Optional title
            description: Optional description
            member_ids: Other members
            properties: Opaque client JSON

        Raises:
            ValidationError: Direct chat without exactly one other member
            NotFoundError: Unknown member id
            ConflictError: chat_id already taken
        """
        others = _distinct_ids(member_ids, exclude=creator_id)

        if not is_group and len(others) != CHAT_CONFIG.DIRECT_CHAT_PEER_COUNT:
            raise ValidationError(
                "A direct chat needs exactly one other member",
                error_code="INVALID_MEMBERS",
            )

        missing = self._missing_users([creator_id, *others])
        if missing:
            raise NotFoundError(
                "User not found",
                error_code="USER_NOT_FOUND",
                details={"user_ids": missing},
            )

        chat = Chat(
            is_group=is_group,
            title=title or "",
            description=description or "",
            created_by_id=creator_id,
            properties=properties or {},
        )
        if chat_id:
            chat.id = chat_id

        try:
            with self.atomic():
                chat.save(using=self.using, force_insert=True)
                self._members().bulk_create(
                    [ChatMember(chat=chat, user_id=creator_id, role=ChatMember.Role.OWNER)]
                    + [ChatMember(chat=chat, user_id=user_id) for user_id in others]
                )
        except IntegrityError as exc:
            raise ConflictError(
                "Chat already exists",
                error_code="CHAT_EXISTS",
                details={"chat_id": str(chat.id)},
            ) from exc

        self.get_logger().info(
            f"User {creator_id} created {'group' if is_group else 'direct'} chat "
            f"{chat.id} with {len(others)} other member(s)"
        )
        return chat

    def ensure_direct_chat(
        self,
        user_id: int,
        peer_id: Any,
        chat_id: UUID | None = None,
        title: str | None = None,
    ) -> tuple[Chat, bool]:
        """
        Find or create the direct chat between user and peer.

        Resolution order:
            1. The chat with chat_id, if it exists (membership is checked
               later by send_message)
            2. An existing direct chat between the two users
            3. A new direct chat, titled "New Chat" unless a title is given

        Returns:
            (chat, created)

        Raises:
            MissingPeerError: peer_id is empty
            ValidationError: peer is the user
            NotFoundError: peer does not exist
        """
        if peer_id in (None, ""):
            raise MissingPeerError()

        peer_id = _coerce_user_id(peer_id)
        if peer_id == user_id:
            raise ValidationError(
                "Cannot start a chat with yourself",
                error_code="SAME_USER",
            )

        if self._missing_users([peer_id]):
            raise NotFoundError("User not found", error_code="USER_NOT_FOUND")

        if chat_id:
            chat = self._chats().filter(id=chat_id).first()
            if chat is not None:
                return chat, False

        existing = (
            self._chats()
            .filter(is_group=False, members__user_id=user_id)
            .filter(members__user_id=peer_id)
            .order_by("created_at")
            .first()
        )
        if existing is not None:
            return existing, False

        chat = self.create_chat(
            creator_id=user_id,
            chat_id=chat_id,
            is_group=False,
            title=title or CHAT_CONFIG.DEFAULT_DIRECT_TITLE,
            member_ids=[peer_id],
        )
        return chat, True

    def ensure_chat_for_message(
        self,
        user_id: int,
        chat_id: UUID | None,
        metadata: dict[str, Any] | None,
    ) -> tuple[Chat, bool]:
        """
        Resolve the chat a message is sent to.

        An existing chat is used as is. Otherwise the message opens a direct
        chat with ``metadata["to"]``, titled ``metadata["name"]``.

        Raises:
            MissingPeerError: Chat does not exist and metadata has no "to"
        """
        if chat_id:
            chat = self._chats().filter(id=chat_id).first()
            if chat is not None:
                return chat, False

        metadata = metadata if isinstance(metadata, dict) else {}
        return self.ensure_direct_chat(
            user_id=user_id,
            peer_id=metadata.get("to"),
            chat_id=chat_id,
            title=metadata.get("name"),
        )

    def add_members(
        self,
        chat_id: UUID,
        actor_id: int,
        member_ids: Iterable[int],
    ) -> list[ChatMember]:
        """
        Add members to a group chat.

        Only owners and admins may add members. Users that already belong to
        the chat are skipped.

        Returns:
            The newly created memberships

        Raises:
            ChatNotFoundError, NotMemberError, PermissionDeniedError,
            ValidationError (direct chat), NotFoundError (unknown user)
        """
        chat = self._chats().filter(id=chat_id).first()
        if chat is None:
            raise ChatNotFoundError()

        actor = self._members().filter(chat_id=chat_id, user_id=actor_id).first()
        if actor is None:
            raise NotMemberError()
        if not actor.can_manage_members:
            raise PermissionDeniedError(
                "Only owners and admins can add members",
                error_code="NOT_CHAT_ADMIN",
            )
        if not chat.is_group:
            raise ValidationError(
                "Members can only be added to group chats",
                error_code="NOT_GROUP_CHAT",
            )

        existing = set(self.get_member_ids(chat_id))
        new_ids = [user_id for user_id in _distinct_ids(member_ids) if user_id not in existing]
        if not new_ids:
            return []

        missing = self._missing_users(new_ids)
        if missing:
            raise NotFoundError(
                "User not found",
                error_code="USER_NOT_FOUND",
                details={"user_ids": missing},
            )

        with self.atomic():
            added = self._members().bulk_create(
                [ChatMember(chat=chat, user_id=user_id) for user_id in new_ids],
                ignore_conflicts=True,
            )

        self.get_logger().info(f"User {actor_id} added {new_ids} to chat {chat_id}")
        return added

    def _unread_messages(self, user_id: int):
        """Messages from others with no read receipt at or after creation."""
        read = MessageReceipt.objects.using(self.using).filter(
            message=OuterRef("pk"),
            recipient_id=user_id,
            read_at__isnull=False,
            read_at__gte=OuterRef("created_at"),
        )
        return (
            Message.objects.using(self.using)
            .exclude(sender_id=user_id)
            .filter(~Exists(read))
        )

    def _member_prefetch(self) -> Prefetch:
        return Prefetch(
            "members",
            queryset=self._members().select_related("user").order_by("created_at"),
        )

    def get_user_chats(self, user_id: int) -> list[Chat]:
        """
        List the chats of a user, most recently active first.

        Each chat carries its prefetched members (with users), a
        ``last_message`` attribute (highest seq, or None) and an
        ``unread_count`` attribute.
        """
        chats = list(
            self._chats()
            .filter(members__user_id=user_id)
            .annotate(last_activity=Coalesce("last_message_at", "created_at"))
            .order_by("-last_activity", "-created_at")
            .prefetch_related(
                self._member_prefetch(),
                Prefetch(
                    "messages",
                    queryset=Message.objects.using(self.using)
                    .select_related("sender")
                    .order_by("-seq")[:1],
                    to_attr="latest_messages",
                ),
            )
        )

        unread = dict(
            self._unread_messages(user_id)
            .filter(chat_id__in=[chat.id for chat in chats])
            .order_by()
            .values("chat_id")
            .annotate(total=Count("id"))
            .values_list("chat_id", "total")
        )

        for chat in chats:
            chat.last_message = chat.latest_messages[0] if chat.latest_messages else None
            chat.unread_count = unread.get(chat.id, 0)
        return chats

    def get_chat_unread_count(self, chat_id: UUID, user_id: int) -> int:
        """Unread messages of a member in one chat. Raises NotMemberError otherwise."""
        self.require_member(chat_id, user_id)
        return self._unread_messages(user_id).filter(chat_id=chat_id).count()

    def get_chat_details(self, chat_id: UUID) -> Chat | None:
        """Chat with prefetched members, or None."""
        return (
            self._chats()
            .filter(id=chat_id)
            .prefetch_related(self._member_prefetch())
            .first()
        )

    def is_member(self, chat_id: UUID, user_id: int) -> bool:
        return self._members().filter(chat_id=chat_id, user_id=user_id).exists()

    def require_member(self, chat_id: UUID, user_id: int) -> None:
        """Raise NotMemberError unless user belongs to the chat."""
        if not self.is_member(chat_id, user_id):
            raise NotMemberError()

    def get_user_chat_ids(self, user_id: int) -> list[UUID]:
        return list(self._members().filter(user_id=user_id).values_list("chat_id", flat=True))

    def get_member_ids(self, chat_id: UUID) -> list[int]:
        return list(self._members().filter(chat_id=chat_id).values_list("user_id", flat=True))


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Store a message with the next per-chat seq
        mark_delivered / mark_read: Receipt updates for one message
        mark_chat_read_up_to: Bulk read receipt up to a seq
        get_chat_messages: Paginated history with per-viewer status
        delete_message: Sender-only hard delete
        get_message_meta: Routing info for receipt notifications
        mark_pending_delivered: Flip pending receipts when a user connects
        purge_expired_messages: Delete expired ephemeral messages
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        super().__init__(using=using)
        self.chats = ChatService(using=using)

    def _messages(self):
        return Message.objects.using(self.using)

    def _receipts(self):
        return MessageReceipt.objects.using(self.using)

    def send_message(
        self,
        chat_id: UUID,
        sender_id: int,
        message_type: str = MessageType.TEXT,
        body: str | None = None,
        media_id: UUID | None = None,
        quoted_message_id: UUID | None = None,
        edit_of_id: UUID | None = None,
        ephemeral_expires_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
        message_id: UUID | None = None,
    ) -> SentMessage:
        """
        Store a message in an existing chat.

        Implementation:
            1. Validate type and body
            2. Lock the chat row (SELECT ... FOR UPDATE)
            3. Check the sender is a member
            4. seq = max(chat.last_seq, max(seq)) + 1, insert the message
            5. Insert one receipt per other member
            6. Update chat.last_seq and chat.last_message_at
        Steps 2-6 run in one transaction. Concurrent senders on the same chat
        queue on the row lock, so seq values stay contiguous. A seq is never
        handed out twice, even after the newest message was deleted.

        The returned status is advisory: "delivered" when the chat is direct
        and the peer is online, "sending" otherwise.

        Raises:
            ValidationError: Bad type, empty text body, foreign quoted message
            ChatNotFoundError: Chat does not exist
            NotMemberError: Sender is not a member
            ConflictError: message_id already taken
        """
        if message_type not in MessageType.values:
            raise ValidationError(
                f"Unsupported message type: {message_type}",
                error_code="INVALID_MESSAGE_TYPE",
            )
        if message_type == MessageType.TEXT and not (body or "").strip():
            raise ValidationError(
                "Text messages need a body",
                error_code="EMPTY_BODY",
            )

        try:
            with self.atomic():
                chat = (
                    Chat.objects.using(self.using)
                    .select_for_update()
                    .filter(id=chat_id)
                    .first()
                )
                if chat is None:
                    raise ChatNotFoundError()

                member_ids = self.chats.get_member_ids(chat_id)
                if sender_id not in member_ids:
                    raise NotMemberError()

                self._check_reference(chat_id, quoted_message_id, "quoted message")
                self._check_reference(chat_id, edit_of_id, "edited message")

                stored_max = self._messages().filter(chat_id=chat_id).aggregate(
                    last=Max("seq")
                )["last"]
                next_seq = max(chat.last_seq, stored_max or 0) + 1

                message = Message(
                    chat=chat,
                    sender_id=sender_id,
                    message_type=message_type,
                    body=body,
                    media_id=media_id,
                    quoted_message_id=quoted_message_id,
                    edit_of_id=edit_of_id,
                    ephemeral_expires_at=ephemeral_expires_at,
                    metadata=metadata or {},
                    seq=next_seq,
                    server_received_at=timezone.now(),
                )
                if message_id:
                    message.id = message_id
                message.save(using=self.using, force_insert=True)

                recipients = [user_id for user_id in member_ids if user_id != sender_id]
                self._receipts().bulk_create(
                    [MessageReceipt(message=message, recipient_id=user_id) for user_id in recipients],
                    ignore_conflicts=True,
                )

                chat.last_seq = next_seq
                chat.last_message_at = message.created_at
                chat.save(
                    using=self.using,
                    update_fields=["last_seq", "last_message_at", "updated_at"],
                )
        except IntegrityError as exc:
            raise ConflictError(
                "Message already exists",
                error_code="MESSAGE_EXISTS",
                details={"message_id": str(message_id)} if message_id else None,
            ) from exc

        status = DeliveryStatus.SENDING
        if not chat.is_group and len(recipients) == 1:
            peer_online = (
                User.objects.using(self.using)
                .filter(id=recipients[0], is_online=True)
                .exists()
            )
            if peer_online:
                status = DeliveryStatus.DELIVERED

        self.get_logger().info(
            f"User {sender_id} sent message {message.id} (seq {message.seq}) to chat {chat_id}"
        )
        return SentMessage(message=message, status=status)

    def send_to_chat(
        self,
        sender_id: int,
        chat_id: UUID | None,
        metadata: dict[str, Any] | None = None,
        **fields: Any,
    ) -> tuple[SentMessage, bool]:
        """
        Send a message, opening the direct chat first when it does not exist.

        Chat resolution (see ChatService.ensure_chat_for_message) and the
        send share one transaction: when the send fails, a chat opened for
        it is rolled back too, so a retry opens it again and the caller
        announces it then.

        Returns:
            (sent, created) where created tells whether the chat is new
        """
        with self.atomic():
            chat, created = self.chats.ensure_chat_for_message(sender_id, chat_id, metadata)
            sent = self.send_message(
                chat_id=chat.id,
                sender_id=sender_id,
                metadata=metadata,
                **fields,
            )
        return sent, created

    def _check_reference(self, chat_id: UUID, message_id: UUID | None, label: str) -> None:
        if message_id and not self._messages().filter(id=message_id, chat_id=chat_id).exists():
            raise ValidationError(
                f"The {label} does not belong to this chat",
                error_code="INVALID_REFERENCE",
                details={"message_id": str(message_id)},
            )

    def mark_delivered(self, message_id: UUID, user_id: int) -> int:
        """Set delivered_at if unset. Returns 1 when the receipt changed."""
        return self._mark_receipt(message_id, user_id, read=False)

    def mark_read(self, message_id: UUID, user_id: int) -> int:
        """Set read_at (and delivered_at) where unset. Returns 1 when the receipt changed."""
        return self._mark_receipt(message_id, user_id, read=True)

    def _mark_receipt(self, message_id: UUID, user_id: int, read: bool) -> int:
        meta = self.get_message_meta(message_id)
        if meta is None:
            raise MessageNotFoundError()
        if meta.sender_id == user_id:
            return 0
        self.chats.require_member(meta.chat_id, user_id)

        now = timezone.now()
        changes: dict[str, Any] = {
            "delivered_at": Coalesce("delivered_at", Value(now)),
            "updated_at": now,
        }
        pending = Q(delivered_at__isnull=True)
        if read:
            changes["read_at"] = Coalesce("read_at", Value(now))
            pending |= Q(read_at__isnull=True)

        with self.atomic():
            receipt, _ = self._receipts().get_or_create(
                message_id=message_id,
                recipient_id=user_id,
            )
            updated = self._receipts().filter(pk=receipt.pk).filter(pending).update(**changes)

        if updated:
            self.get_logger().debug(
                f"User {user_id} marked message {message_id} {'read' if read else 'delivered'}"
            )
        return updated

    def mark_chat_read_up_to(self, chat_id: UUID, upto_seq: int, user_id: int) -> int:
        """
        Mark every message from others with seq <= upto_seq as read.

        Missing receipts are created first. Both timestamps are set where
        NULL, so repeating the call changes nothing.

        Returns:
            Number of receipts that changed
        """
        if isinstance(upto_seq, bool) or not isinstance(upto_seq, int) or upto_seq < 0:
            raise ValidationError(
                "uptoSeq must be a non-negative integer",
                error_code="INVALID_SEQ",
            )
        self.chats.require_member(chat_id, user_id)

        targets = (
            self._messages()
            .filter(chat_id=chat_id, seq__lte=upto_seq)
            .exclude(sender_id=user_id)
        )
        has_receipt = self._receipts().filter(message=OuterRef("pk"), recipient_id=user_id)
        now = timezone.now()

        with self.atomic():
            missing = targets.filter(~Exists(has_receipt)).values_list("id", flat=True)
            self._receipts().bulk_create(
                [MessageReceipt(message_id=message_id, recipient_id=user_id) for message_id in missing],
                ignore_conflicts=True,
            )
            updated = (
                self._receipts()
                .filter(recipient_id=user_id, message__in=targets.values("id"))
                .filter(Q(delivered_at__isnull=True) | Q(read_at__isnull=True))
                .update(
                    delivered_at=Coalesce("delivered_at", Value(now)),
                    read_at=Coalesce("read_at", Value(now)),
                    updated_at=now,
                )
            )

        self.get_logger().debug(
            f"User {user_id} read chat {chat_id} up to seq {upto_seq} ({updated} changed)"
        )
        return updated

    def get_chat_messages(
        self,
        chat_id: UUID,
        requester_id: int,
        limit: int | None = None,
        before_seq: int | None = None,
    ) -> list[Message]:
        """
        Page of chat history for a member, ascending by seq.

        The page holds the newest ``limit`` messages with seq < before_seq
        (or the newest overall). Each message carries:
            my_delivered_at / my_read_at: the requester's receipt
            status: viewer status (aggregate for the requester's own messages)
            receipt_map: {recipient_id: receipt} on the requester's own messages,
                         None otherwise
        """
        self.chats.require_member(chat_id, requester_id)

        if limit is None:
            limit = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE
        limit = max(MESSAGE_CONFIG.MIN_PAGE_SIZE, min(int(limit), MESSAGE_CONFIG.MAX_PAGE_SIZE))

        mine = self._receipts().filter(message=OuterRef("pk"), recipient_id=requester_id)
        queryset = (
            self._messages()
            .filter(chat_id=chat_id)
            .select_related("sender")
            .annotate(
                my_delivered_at=Subquery(mine.values("delivered_at")[:1]),
                my_read_at=Subquery(mine.values("read_at")[:1]),
            )
            .prefetch_related(
                Prefetch("receipts", queryset=self._receipts().order_by("recipient_id"))
            )
        )
        if before_seq is not None:
            queryset = queryset.filter(seq__lt=before_seq)

        page = list(queryset.order_by("-seq")[:limit])
        page.reverse()

        for message in page:
            if message.sender_id == requester_id:
                receipts = list(message.receipts.all())
                message.status = aggregate_status(receipts)
                message.receipt_map = {receipt.recipient_id: receipt for receipt in receipts}
            else:
                message.receipt_map = None
                if message.my_read_at:
                    message.status = DeliveryStatus.READ
                elif message.my_delivered_at:
                    message.status = DeliveryStatus.DELIVERED
                else:
                    message.status = DeliveryStatus.SENT
        return page

    def delete_message(self, message_id: UUID, requester_id: int) -> DeletedMessage | None:
        """
        Hard-delete a message if the requester sent it.

        Returns None when nothing matched; a missing message and someone
        else's message look the same to the caller.
        """
        row = (
            self._messages()
            .filter(id=message_id, sender_id=requester_id)
            .values_list("id", "chat_id", "seq")
            .first()
        )
        if row is None:
            return None

        deleted = DeletedMessage(*row)
        with self.atomic():
            count, _ = self._messages().filter(id=deleted.id).delete()
        if not count:
            return None

        self.get_logger().info(f"User {requester_id} deleted message {deleted.id}")
        return deleted

    def get_message_meta(self, message_id: UUID) -> MessageMeta | None:
        row = (
            self._messages()
            .filter(id=message_id)
            .values_list("id", "chat_id", "sender_id", "seq")
            .first()
        )
        return MessageMeta(*row) if row else None

    def mark_pending_delivered(self, user_id: int) -> list[MessageMeta]:
        """
        Mark every undelivered receipt of the user as delivered.

        Called when the user's first connection comes up.

        Returns:
            Metas of the affected messages, so senders can be notified
        """
        pending = list(
            self._receipts()
            .filter(recipient_id=user_id, delivered_at__isnull=True)
            .order_by("message__chat_id", "message__seq")
            .values_list(
                "id",
                "message_id",
                "message__chat_id",
                "message__sender_id",
                "message__seq",
            )
        )
        if not pending:
            return []

        now = timezone.now()
        with self.atomic():
            self._receipts().filter(
                id__in=[row[0] for row in pending],
                delivered_at__isnull=True,
            ).update(delivered_at=now, updated_at=now)

        self.get_logger().info(f"Marked {len(pending)} pending message(s) delivered to user {user_id}")
        return [MessageMeta(*row[1:]) for row in pending]

    def purge_expired_messages(self, now: datetime | None = None) -> list[DeletedMessage]:
        """Delete messages whose ephemeral_expires_at <= now."""
        now = now or timezone.now()
        with self.atomic():
            expired = [
                DeletedMessage(*row)
                for row in self._messages()
                .filter(ephemeral_expires_at__lte=now)
                .values_list("id", "chat_id", "seq")
            ]
            if expired:
                self._messages().filter(id__in=[item.id for item in expired]).delete()

        if expired:
            self.get_logger().info(f"Purged {len(expired)} expired message(s)")
        return expired
