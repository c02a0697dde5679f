"""
Tests for the WebSocket gateway.

Uses channels' WebsocketCommunicator against the in-memory channel layer.
The application is wrapped in JWTAuthMiddleware exactly like config.asgi,
so connections authenticate with a real access token.
"""

import uuid

import pytest
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from rest_framework_simplejwt.tokens import AccessToken

from authentication.models import User
from chat.middleware import JWTAuthMiddleware
from chat.models import Chat, MessageReceipt
from chat.routing import websocket_urlpatterns
from chat.services import MessageService

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))

TIMEOUT = 3

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


# =============================================================================
# Helpers
# =============================================================================


def _communicator(user=None, token=None, subprotocols=None):
    path = "/ws/chat/"
    if user is not None:
        token = str(AccessToken.for_user(user))
    if token is not None and subprotocols is None:
        path = f"{path}?token={token}"
    return WebsocketCommunicator(application, path, subprotocols=subprotocols)


async def _connect(user):
    communicator = _communicator(user)
    connected, _ = await communicator.connect(timeout=TIMEOUT)
    assert connected
    await _drain(communicator)
    return communicator


async def _drain(communicator):
    """Drop everything already queued for the connection."""
    while not await communicator.receive_nothing(timeout=0.2):
        await communicator.receive_json_from(timeout=TIMEOUT)


async def _receive_event(communicator, event):
    """Skip frames until one with the given event arrives."""
    while True:
        frame = await communicator.receive_json_from(timeout=TIMEOUT)
        if frame["event"] == event:
            return frame


async def _request(communicator, event, data, ack=1):
    await communicator.send_json_to({"event": event, "data": data, "ack": ack})
    frame = await _receive_event(communicator, "ack")
    assert frame["ack"] == ack
    return frame["data"]


# =============================================================================
# Connection
# =============================================================================


class TestConnection:
    """Handshake authentication and presence."""

    async def test_anonymous_rejected(self, db):
        """
        A handshake without a token is closed with 4001.

        Why it matters: clients use the close code to send the user back to
        the login screen instead of reconnecting in a loop.
        """
        connected, code = await _communicator().connect(timeout=TIMEOUT)

        assert connected is False
        assert code == 4001

    async def test_invalid_token_rejected(self, db):
        connected, code = await _communicator(token="not-a-jwt").connect(timeout=TIMEOUT)

        assert connected is False
        assert code == 4001

    async def test_subprotocol_token(self, alice):
        token = str(AccessToken.for_user(alice))
        communicator = _communicator(subprotocols=["jwt", token])

        connected, subprotocol = await communicator.connect(timeout=TIMEOUT)

        assert connected
        assert subprotocol == "jwt"
        await communicator.disconnect()

    async def test_presence_round_trip(self, alice, bob):
        watcher = await _connect(alice)

        bob_socket = await _connect(bob)
        online = await _receive_event(watcher, "user:online")
        assert online["data"] == {"userId": bob.id}
        assert (await database_sync_to_async(User.objects.get)(id=bob.id)).is_online

        await bob_socket.disconnect()
        offline = await _receive_event(watcher, "user:offline")
        assert offline["data"]["userId"] == bob.id
        assert offline["data"]["lastSeenAt"]
        assert not (await database_sync_to_async(User.objects.get)(id=bob.id)).is_online

        await watcher.disconnect()

    async def test_second_device_is_silent(self, alice, bob):
        """
        Presence changes only on the first and last connection of a user.

        Why it matters: opening a second tab must not flap the user offline
        when one of the tabs closes.
        """
        watcher = await _connect(alice)
        first = await _connect(bob)
        await _drain(watcher)

        second = await _connect(bob)
        assert await watcher.receive_nothing(timeout=0.3)

        await second.disconnect()
        assert await watcher.receive_nothing(timeout=0.3)

        await first.disconnect()
        await _receive_event(watcher, "user:offline")
        await watcher.disconnect()

    async def test_pending_receipts_delivered_on_connect(self, direct_chat, alice, bob):
        alice_socket = await _connect(alice)
        sent = await database_sync_to_async(MessageService().send_message)(
            chat_id=direct_chat.id, sender_id=alice.id, body="while you were away"
        )

        bob_socket = await _connect(bob)

        receipt = await _receive_event(alice_socket, "receipt:delivered")
        assert receipt["data"]["messageId"] == str(sent.message.id)
        assert receipt["data"]["byUserId"] == bob.id
        stored = await database_sync_to_async(MessageReceipt.objects.get)(
            message_id=sent.message.id, recipient_id=bob.id
        )
        assert stored.delivered_at is not None

        await alice_socket.disconnect()
        await bob_socket.disconnect()


# =============================================================================
# Events
# =============================================================================


class TestMessageSend:
    """message:send"""

    async def test_message_reaches_chat_members(self, direct_chat, alice, bob):
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)

        result = await _request(
            alice_socket, "message:send", {"chatId": str(direct_chat.id), "body": "hi"}
        )

        assert result["ok"] is True
        assert result["status"] == "delivered"
        assert result["message"]["seq"] == 1
        frame = await _receive_event(bob_socket, "message:new")
        assert frame["data"]["id"] == result["message"]["id"]
        assert frame["data"]["body"] == "hi"

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_non_member_gets_error_ack(self, direct_chat, outsider):
        communicator = await _connect(outsider)

        result = await _request(
            communicator, "message:send", {"chatId": str(direct_chat.id), "body": "hi"}
        )

        assert result == {"ok": False, "error": "Not a member of this chat"}
        await communicator.disconnect()

    async def test_first_message_opens_chat_for_peer(self, alice, bob):
        """
        The peer learns about a new chat before its first message and keeps
        receiving the chat's later messages.

        Why it matters: the peer's connection joins the chat room from the
        chat:new event, otherwise follow-up messages would be lost.
        """
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)
        chat_id = str(uuid.uuid4())

        first = await _request(
            alice_socket,
            "message:send",
            {"chatId": chat_id, "body": "hello", "metadata": {"to": bob.id}},
        )
        assert first["ok"] is True

        announced = await bob_socket.receive_json_from(timeout=TIMEOUT)
        assert announced["event"] == "chat:new"
        assert announced["data"]["id"] == chat_id
        delivered = await _receive_event(bob_socket, "message:new")
        assert delivered["data"]["body"] == "hello"

        await _request(alice_socket, "message:send", {"chatId": chat_id, "body": "again"}, ack=2)
        follow_up = await _receive_event(bob_socket, "message:new")
        assert follow_up["data"]["seq"] == 2
        assert await database_sync_to_async(Chat.objects.filter(id=chat_id).exists)()

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_failed_first_message_then_retry(self, alice, bob):
        """
        A first message that fails leaves no chat, so the retry still
        announces the chat to the peer.

        Why it matters: the peer's connections only join a new chat's room
        from chat:new; a half-created chat would silence it for good.
        """
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)
        chat_id = str(uuid.uuid4())
        request = {"chatId": chat_id, "body": "", "metadata": {"to": bob.id}}

        failed = await _request(alice_socket, "message:send", request)

        assert failed["ok"] is False
        assert not await database_sync_to_async(Chat.objects.filter(id=chat_id).exists)()
        assert await bob_socket.receive_nothing(timeout=0.3)

        retry = await _request(alice_socket, "message:send", {**request, "body": "hi"}, ack=2)

        assert retry["ok"] is True
        announced = await _receive_event(bob_socket, "chat:new")
        assert announced["data"]["id"] == chat_id
        delivered = await _receive_event(bob_socket, "message:new")
        assert delivered["data"]["body"] == "hi"

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_bad_field_checked_before_chat_opens(self, alice, bob):
        communicator = await _connect(alice)
        chat_id = str(uuid.uuid4())

        result = await _request(
            communicator,
            "message:send",
            {"chatId": chat_id, "body": "hi", "editOf": "nope", "metadata": {"to": bob.id}},
        )

        assert result == {"ok": False, "error": "editOf must be a valid UUID"}
        assert not await database_sync_to_async(Chat.objects.filter(id=chat_id).exists)()
        await communicator.disconnect()

    async def test_missing_recipient(self, alice):
        communicator = await _connect(alice)

        result = await _request(
            communicator, "message:send", {"chatId": str(uuid.uuid4()), "body": "hi"}
        )

        assert result == {"ok": False, "error": "Recipient is required to start a chat"}
        await communicator.disconnect()

    async def test_invalid_uuid(self, alice):
        communicator = await _connect(alice)

        result = await _request(communicator, "message:send", {"chatId": "nope", "body": "x"})

        assert result["ok"] is False
        assert result["error"] == "chatId must be a valid UUID"
        await communicator.disconnect()


class TestReceiptEvents:
    """receipt:delivered, receipt:read and chat:readUpTo"""

    async def test_read_receipt_reaches_sender(self, direct_chat, alice, bob):
        sent = await database_sync_to_async(MessageService().send_message)(
            chat_id=direct_chat.id, sender_id=alice.id, body="hi"
        )
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)

        result = await _request(bob_socket, "receipt:read", {"messageId": str(sent.message.id)})

        assert result == {"ok": True, "updated": 1}
        frame = await _receive_event(alice_socket, "receipt:read")
        assert frame["data"]["messageId"] == str(sent.message.id)
        assert frame["data"]["chatId"] == str(direct_chat.id)
        assert frame["data"]["byUserId"] == bob.id

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_read_up_to_notifies_members(self, group_chat, alice, bob, carol):
        service = MessageService()
        for body in ("one", "two"):
            await database_sync_to_async(service.send_message)(
                chat_id=group_chat.id, sender_id=alice.id, body=body
            )
        alice_socket = await _connect(alice)
        carol_socket = await _connect(carol)
        await _drain(alice_socket)

        result = await _request(
            carol_socket, "chat:readUpTo", {"chatId": str(group_chat.id), "uptoSeq": 2}
        )

        assert result == {"ok": True, "updated": 2}
        frame = await _receive_event(alice_socket, "chat:readUpTo")
        assert frame["data"]["uptoSeq"] == 2
        assert frame["data"]["byUserId"] == carol.id

        await alice_socket.disconnect()
        await carol_socket.disconnect()

    async def test_missing_message_id(self, alice):
        communicator = await _connect(alice)

        result = await _request(communicator, "receipt:delivered", {})

        assert result == {"ok": False, "error": "messageId is required"}
        await communicator.disconnect()


class TestRoomEvents:
    """typing, chat:join, chat:leave and dispatch edge cases"""

    async def test_typing_skips_the_typist(self, direct_chat, alice, bob):
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)

        await alice_socket.send_json_to(
            {"event": "typing", "data": {"chatId": str(direct_chat.id), "isTyping": True}}
        )

        frame = await _receive_event(bob_socket, "typing")
        assert frame["data"] == {"chatId": str(direct_chat.id), "userId": alice.id, "isTyping": True}
        assert await alice_socket.receive_nothing(timeout=0.3)

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_join_requires_membership(self, direct_chat, outsider):
        communicator = await _connect(outsider)

        result = await _request(communicator, "chat:join", {"chatId": str(direct_chat.id)})

        assert result == {"ok": False, "error": "Not a member of this chat"}
        await communicator.disconnect()

    async def test_leave_stops_chat_events(self, direct_chat, alice, bob):
        alice_socket = await _connect(alice)
        bob_socket = await _connect(bob)
        await _drain(alice_socket)

        assert await _request(bob_socket, "chat:leave", {"chatId": str(direct_chat.id)}) == {"ok": True}
        await _request(alice_socket, "message:send", {"chatId": str(direct_chat.id), "body": "hi"})
        assert await bob_socket.receive_nothing(timeout=0.3)

        assert await _request(bob_socket, "chat:join", {"chatId": str(direct_chat.id)}, ack=2) == {"ok": True}
        await _request(alice_socket, "message:send", {"chatId": str(direct_chat.id), "body": "back"}, ack=2)
        frame = await _receive_event(bob_socket, "message:new")
        assert frame["data"]["body"] == "back"

        await alice_socket.disconnect()
        await bob_socket.disconnect()

    async def test_unknown_event(self, alice):
        communicator = await _connect(alice)

        result = await _request(communicator, "bogus", {})

        assert result == {"ok": False, "error": "Unknown event: bogus"}
        await communicator.disconnect()

    async def test_no_ack_no_reply(self, alice):
        communicator = await _connect(alice)

        await communicator.send_json_to({"event": "bogus", "data": {}})

        assert await communicator.receive_nothing(timeout=0.3)
        await communicator.disconnect()
