"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Realtime gateway (one connection carries every chat)

Authentication:
    JWT via ?token=, Authorization header or the "jwt" subprotocol,
    validated by chat.middleware.JWTAuthMiddleware.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatGatewayConsumer.as_asgi()),
]
