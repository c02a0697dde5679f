"""
Channel layer fan-out shared by the gateway, the REST views and Celery tasks.

Every connected gateway consumer joins:
    user_<id>     private group of the user (all of the user's devices)
    presence      everybody, for user:online / user:offline
    chat_<id>     one group per chat membership

Events travel through the layer as
    {"type": "gateway.event", "event": <name>, "data": <payload>,
     "skip_user": <id>?, "join_chat": <chat id>?}
and reach clients as {"event": <name>, "data": <payload>}.
``skip_user`` drops the event on that user's connections (typing);
``join_chat`` makes the receiving connection join the chat group first
(chat:new, added members).

Usage:
    # async (consumers)
    await send_to_group(chat_group(chat.id), EVENTS.MESSAGE_NEW, payload)

    # sync (views, tasks)
    send_to_group_sync(user_group(sender_id), EVENTS.RECEIPT_READ, payload)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from chat.constants import EVENTS, GATEWAY_CONFIG

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any
    from uuid import UUID

    from chat.services import DeletedMessage, MessageMeta

logger = logging.getLogger(__name__)

EVENT_HANDLER_TYPE = "gateway.event"


def chat_group(chat_id: UUID | str) -> str:
    return f"{GATEWAY_CONFIG.CHAT_GROUP_PREFIX}{chat_id}"


def user_group(user_id: int | str) -> str:
    return f"{GATEWAY_CONFIG.USER_GROUP_PREFIX}{user_id}"


def build_event(
    event: str,
    data: dict[str, Any],
    skip_user: int | None = None,
    join_chat: UUID | str | None = None,
) -> dict[str, Any]:
    """Channel layer message for the consumer's gateway_event handler."""
    message: dict[str, Any] = {"type": EVENT_HANDLER_TYPE, "event": event, "data": data}
    if skip_user is not None:
        message["skip_user"] = skip_user
    if join_chat is not None:
        message["join_chat"] = str(join_chat)
    return message


async def send_to_group(group: str, event: str, data: dict[str, Any], channel_layer=None, **options) -> None:
    layer = channel_layer or get_channel_layer()
    if layer is None:
        logger.warning(f"No channel layer configured, dropping {event} for {group}")
        return
    await layer.group_send(group, build_event(event, data, **options))


def send_to_group_sync(group: str, event: str, data: dict[str, Any], **options) -> None:
    """
    Blocking variant for sync code.

    Failures are logged and swallowed: the write that triggered the event
    has already been committed.
    """
    layer = get_channel_layer()
    if layer is None:
        logger.warning(f"No channel layer configured, dropping {event} for {group}")
        return
    try:
        async_to_sync(layer.group_send)(group, build_event(event, data, **options))
    except Exception:
        logger.exception(f"Failed to broadcast {event} to {group}")


def send_to_users_sync(user_ids: Iterable[int], event: str, data: dict[str, Any], **options) -> None:
    for user_id in user_ids:
        send_to_group_sync(user_group(user_id), event, data, **options)


# =============================================================================
# Payloads
# =============================================================================


def now_iso() -> str:
    return timezone.now().isoformat()


def receipt_payload(meta: MessageMeta, by_user_id: int, at: str | None = None) -> dict[str, Any]:
    return {
        "messageId": str(meta.id),
        "chatId": str(meta.chat_id),
        "byUserId": by_user_id,
        "at": at or now_iso(),
    }


def read_up_to_payload(chat_id: UUID, by_user_id: int, upto_seq: int, at: str | None = None) -> dict[str, Any]:
    return {
        "chatId": str(chat_id),
        "byUserId": by_user_id,
        "uptoSeq": upto_seq,
        "at": at or now_iso(),
    }


def deleted_payload(deleted: DeletedMessage) -> dict[str, Any]:
    return {
        "messageId": str(deleted.id),
        "chatId": str(deleted.chat_id),
        "seq": deleted.seq,
    }


def announce_message_deleted(deleted: DeletedMessage) -> None:
    send_to_group_sync(chat_group(deleted.chat_id), EVENTS.MESSAGE_DELETED, deleted_payload(deleted))


def announce_chat_sync(
    chat_payload: dict[str, Any],
    user_ids: Iterable[int],
    message_payload: dict[str, Any] | None = None,
) -> None:
    """
    Send chat:new to each user's private group and join their connections.

    When the chat was created by its first message, that message follows
    chat:new on the same private groups so it cannot overtake the join.
    """
    for user_id in user_ids:
        group = user_group(user_id)
        send_to_group_sync(group, EVENTS.CHAT_NEW, chat_payload, join_chat=chat_payload["id"])
        if message_payload is not None:
            send_to_group_sync(group, EVENTS.MESSAGE_NEW, message_payload)
