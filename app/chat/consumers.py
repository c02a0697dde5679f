"""
WebSocket gateway for the chat application.

One connection per client device carries every chat of the user.

Consumers:
    ChatGatewayConsumer: Authenticated realtime gateway at ws/chat/

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"]. Anonymous
    handshakes are closed with code 4001 before accept.

Channel Groups (see chat.broadcast):
    user_<id>   private group of the user
    presence    user:online / user:offline
    chat_<id>   one per membership, joined on connect

Envelope:
    client -> server  {"event": "message:send", "data": {...}, "ack": 7}
    server -> client  {"event": "message:new", "data": {...}}
    acknowledgment    {"event": "ack", "ack": 7, "data": {"ok": true, ...}}
                      {"event": "ack", "ack": 7, "data": {"ok": false, "error": "..."}}
    Acks are only sent when the client supplied "ack".

Events (from client):
    message:send, receipt:delivered, receipt:read, chat:readUpTo,
    typing, chat:join, chat:leave

Events (to client):
    message:new, message:deleted, receipt:delivered, receipt:read,
    chat:readUpTo, chat:new, typing, user:online, user:offline, ack
"""

from __future__ import annotations

import logging
from uuid import UUID

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils.dateparse import parse_datetime

from chat import broadcast
from chat.constants import EVENTS, GATEWAY_CONFIG
from chat.presence import ConnectionRegistry, PresenceService
from chat.serializers import ChatSerializer, MessageSerializer
from chat.services import ChatService, MessageService
from core.exceptions import BaseApplicationError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong, try again later"


def _uuid(data: dict, key: str, required: bool = True) -> UUID | None:
    value = data.get(key)
    if value in (None, ""):
        if required:
            raise ValidationError(f"{key} is required", error_code="MISSING_FIELD")
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be a valid UUID", error_code="INVALID_UUID") from None


def _datetime(data: dict, key: str):
    value = data.get(key)
    if value in (None, ""):
        return None
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO 8601 datetime", error_code="INVALID_DATETIME")
    return parsed


class ChatGatewayConsumer(AsyncJsonWebsocketConsumer):
    """
    Realtime gateway.

    Handles:
        - Connection authentication and presence
        - Room membership (private, presence and chat groups)
        - Sending messages and receipts
        - Typing indicators

    Attributes:
        registry: Process-wide connection registry
        user: Authenticated user (after connect)
        joined_groups: Channel layer groups this connection belongs to
    """

    registry = ConnectionRegistry()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.joined_groups: set[str] = set()
        self.chats = ChatService()
        self.messages = MessageService()
        self.presence = PresenceService()
        self.handlers = {
            EVENTS.MESSAGE_SEND: self.handle_message_send,
            EVENTS.RECEIPT_DELIVERED: self.handle_receipt_delivered,
            EVENTS.RECEIPT_READ: self.handle_receipt_read,
            EVENTS.CHAT_READ_UP_TO: self.handle_read_up_to,
            EVENTS.TYPING: self.handle_typing,
            EVENTS.CHAT_JOIN: self.handle_chat_join,
            EVENTS.CHAT_LEAVE: self.handle_chat_leave,
        }

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user is not None else None

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self):
        """
        Handle WebSocket connection.

        Rejects anonymous handshakes, then joins the private, presence and
        chat groups. The user's first connection in this process marks them
        online and flips their pending receipts to delivered.
        """
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated gateway connection")
            await self.close(code=GATEWAY_CONFIG.CLOSE_CODE_UNAUTHENTICATED)
            return

        self.user = user
        subprotocol = None
        if GATEWAY_CONFIG.JWT_SUBPROTOCOL in self.scope.get("subprotocols", []):
            subprotocol = GATEWAY_CONFIG.JWT_SUBPROTOCOL
        await self.accept(subprotocol=subprotocol)

        first_connection = self.registry.add(self.user_id, self.channel_name)

        await self._join(broadcast.user_group(self.user_id))
        await self._join(GATEWAY_CONFIG.PRESENCE_GROUP)
        try:
            chat_ids = await database_sync_to_async(self.chats.get_user_chat_ids)(self.user_id)
        except DatabaseError:
            logger.exception(f"Could not load chats of user {self.user_id}")
            chat_ids = []
        for chat_id in chat_ids:
            await self._join(broadcast.chat_group(chat_id))

        logger.info(f"User {self.user_id} connected ({len(chat_ids)} chats)")

        if first_connection:
            await self._on_first_connection()

    async def _on_first_connection(self):
        try:
            await database_sync_to_async(self.presence.set_online)(self.user_id)
            delivered = await database_sync_to_async(self.messages.mark_pending_delivered)(
                self.user_id
            )
        except DatabaseError:
            logger.exception(f"Could not update presence of user {self.user_id}")
            return

        at = broadcast.now_iso()
        for meta in delivered:
            await self._send(
                broadcast.user_group(meta.sender_id),
                EVENTS.RECEIPT_DELIVERED,
                broadcast.receipt_payload(meta, self.user_id, at),
            )
        await self._send(GATEWAY_CONFIG.PRESENCE_GROUP, EVENTS.USER_ONLINE, {"userId": self.user_id})

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Leaves every group. The user's last connection marks them offline
        and announces user:offline.
        """
        if self.user is None:
            return

        for group in list(self.joined_groups):
            await self._leave(group)

        if not self.registry.remove(self.user_id, self.channel_name):
            logger.info(f"User {self.user_id} closed a connection ({close_code})")
            return

        try:
            last_seen = await database_sync_to_async(self.presence.set_offline)(self.user_id)
        except DatabaseError:
            logger.exception(f"Could not update presence of user {self.user_id}")
            return

        await self._send(
            GATEWAY_CONFIG.PRESENCE_GROUP,
            EVENTS.USER_OFFLINE,
            {"userId": self.user_id, "lastSeenAt": last_seen.isoformat()},
        )
        logger.info(f"User {self.user_id} disconnected ({close_code})")

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an incoming envelope to its handler.

        Handler errors become {"ok": false, "error": ...}; the connection
        stays open.
        """
        if not isinstance(content, dict):
            await self.send_json({"event": "error", "data": {"error": "Invalid envelope"}})
            return

        event = content.get("event")
        data = content.get("data")
        if not isinstance(data, dict):
            data = {}
        ack = content.get("ack")

        handler = self.handlers.get(event)
        if handler is None:
            result = {"ok": False, "error": f"Unknown event: {event}"}
        else:
            try:
                result = await handler(data)
            except BaseApplicationError as exc:
                logger.info(f"{event} from user {self.user_id} rejected: {exc}")
                result = {"ok": False, "error": exc.message}
            except DjangoValidationError as exc:
                result = {"ok": False, "error": "; ".join(exc.messages)}
            except DatabaseError:
                logger.exception(f"Database error handling {event} from user {self.user_id}")
                result = {"ok": False, "error": GENERIC_ERROR}
            except Exception:
                logger.exception(f"Unexpected error handling {event} from user {self.user_id}")
                result = {"ok": False, "error": GENERIC_ERROR}

        if ack is not None and result is not None:
            await self.send_json({"event": EVENTS.ACK, "ack": ack, "data": result})

    async def gateway_event(self, event):
        """
        Handle gateway.event messages from the channel layer.

        Joins the announced chat first when the event carries join_chat,
        and drops events aimed away from this user (skip_user).
        """
        if event.get("skip_user") is not None and event["skip_user"] == self.user_id:
            return
        if event.get("join_chat"):
            await self._join(broadcast.chat_group(event["join_chat"]))
        await self.send_json({"event": event["event"], "data": event["data"]})

    # =========================================================================
    # Handlers
    # =========================================================================

    async def handle_message_send(self, data):
        """
        message:send

        When the chat does not exist yet, metadata.to names the peer of a new
        direct chat. A new chat is announced to every member before the
        message itself, through their private groups. A failed first send
        leaves no chat behind.
        """
        chat_id = _uuid(data, "chatId", required=False)
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValidationError("metadata must be an object", error_code="INVALID_METADATA")
        fields = {
            "message_type": data.get("messageType") or "text",
            "body": data.get("body"),
            "media_id": _uuid(data, "mediaId", required=False),
            "quoted_message_id": _uuid(data, "quotedMessageId", required=False),
            "edit_of_id": _uuid(data, "editOf", required=False),
            "ephemeral_expires_at": _datetime(data, "ephemeralExpiresAt"),
            "message_id": _uuid(data, "messageId", required=False),
        }

        sent, created = await database_sync_to_async(self.messages.send_to_chat)(
            self.user_id, chat_id, metadata, **fields
        )
        chat_id = sent.message.chat_id
        payload = MessageSerializer(sent.message).data

        if created:
            await self._announce_new_chat(chat_id, payload)
        else:
            await self._send(broadcast.chat_group(chat_id), EVENTS.MESSAGE_NEW, payload)

        return {"ok": True, "message": payload, "status": sent.status}

    async def _announce_new_chat(self, chat_id, message_payload):
        details = await database_sync_to_async(self.chats.get_chat_details)(chat_id)
        chat_payload = await database_sync_to_async(lambda: ChatSerializer(details).data)()
        await self._join(broadcast.chat_group(chat_id))
        for member in chat_payload["members"]:
            group = broadcast.user_group(member["id"])
            await self._send(group, EVENTS.CHAT_NEW, chat_payload, join_chat=chat_id)
            await self._send(group, EVENTS.MESSAGE_NEW, message_payload)

    async def _handle_receipt(self, data, event: str):
        message_id = _uuid(data, "messageId")
        mark = self.messages.mark_read if event == EVENTS.RECEIPT_READ else self.messages.mark_delivered
        updated = await database_sync_to_async(mark)(message_id, self.user_id)

        if updated:
            meta = await database_sync_to_async(self.messages.get_message_meta)(message_id)
            if meta is not None:
                await self._send(
                    broadcast.user_group(meta.sender_id),
                    event,
                    broadcast.receipt_payload(meta, self.user_id),
                )
        return {"ok": True, "updated": updated}

    async def handle_receipt_delivered(self, data):
        """receipt:delivered"""
        return await self._handle_receipt(data, EVENTS.RECEIPT_DELIVERED)

    async def handle_receipt_read(self, data):
        """receipt:read"""
        return await self._handle_receipt(data, EVENTS.RECEIPT_READ)

    async def handle_read_up_to(self, data):
        """chat:readUpTo - notifies the other members' private groups."""
        chat_id = _uuid(data, "chatId")
        upto_seq = data.get("uptoSeq")
        updated = await database_sync_to_async(self.messages.mark_chat_read_up_to)(
            chat_id, upto_seq, self.user_id
        )

        member_ids = await database_sync_to_async(self.chats.get_member_ids)(chat_id)
        payload = broadcast.read_up_to_payload(chat_id, self.user_id, upto_seq)
        for member_id in member_ids:
            if member_id != self.user_id:
                await self._send(broadcast.user_group(member_id), EVENTS.CHAT_READ_UP_TO, payload)
        return {"ok": True, "updated": updated}

    async def handle_typing(self, data):
        """typing - relayed to the chat group, skipping the typist's devices."""
        chat_id = _uuid(data, "chatId")
        await database_sync_to_async(self.chats.require_member)(chat_id, self.user_id)
        await self._send(
            broadcast.chat_group(chat_id),
            EVENTS.TYPING,
            {"chatId": str(chat_id), "userId": self.user_id, "isTyping": bool(data.get("isTyping"))},
            skip_user=self.user_id,
        )
        return None

    async def handle_chat_join(self, data):
        """chat:join"""
        chat_id = _uuid(data, "chatId")
        await database_sync_to_async(self.chats.require_member)(chat_id, self.user_id)
        await self._join(broadcast.chat_group(chat_id))
        return {"ok": True}

    async def handle_chat_leave(self, data):
        """chat:leave"""
        chat_id = _uuid(data, "chatId")
        await self._leave(broadcast.chat_group(chat_id))
        return {"ok": True}

    # =========================================================================
    # Channel layer helpers
    # =========================================================================

    async def _join(self, group: str):
        try:
            await self.channel_layer.group_add(group, self.channel_name)
        except Exception:
            logger.exception(f"Failed to join {group} for user {self.user_id}")
            return
        self.joined_groups.add(group)

    async def _leave(self, group: str):
        self.joined_groups.discard(group)
        await self.channel_layer.group_discard(group, self.channel_name)

    async def _send(self, group: str, event: str, data, **options):
        await broadcast.send_to_group(group, event, data, channel_layer=self.channel_layer, **options)
