"""
Chat app for real-time messaging.

This app handles:
- Direct and group chats with owner/admin/member roles
- Message sending with a per-chat sequence number (seq)
- Delivery and read receipts per recipient
- WebSocket gateway for live events, typing and presence
- Purging of expired ephemeral messages (Celery beat)

Related apps:
    - authentication: User model for members (presence lives on User)

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the gateway.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import ChatService, MessageService

    # Create chat
    chat = ChatService().create_chat(
        creator_id=user.id,
        member_ids=[other_user.id],
    )

    # Send message
    sent = MessageService().send_message(
        chat_id=chat.id,
        sender_id=user.id,
        body="Hello!",
    )
"""
