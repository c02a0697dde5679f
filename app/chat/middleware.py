"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers
    - config/asgi.py: ASGI configuration

Token Passing Methods (first match wins):
    1. Query string: ws://host/ws/chat/?token=<jwt_token>
    2. Header: Authorization: Bearer <jwt_token>
    3. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>

A missing or invalid token leaves AnonymousUser in the scope; the consumer
then closes the handshake with code 4001.

Usage in config/asgi.py:
    from chat.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from chat.constants import GATEWAY_CONFIG

logger = logging.getLogger(__name__)


def get_token_from_query(scope) -> str | None:
    """Extract token from query string."""
    query_string = scope.get("query_string", b"").decode()
    token_list = parse_qs(query_string).get("token", [])
    return token_list[0] if token_list else None


def get_token_from_header(scope) -> str | None:
    """Extract token from an ``Authorization: Bearer`` header."""
    for name, value in scope.get("headers", []):
        if name.lower() != b"authorization":
            continue
        scheme, _, token = value.decode().partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return None


def get_token_from_subprotocol(scope) -> str | None:
    """
    Extract token from WebSocket subprotocol.

    Expects: Sec-WebSocket-Protocol: jwt, <token>
    """
    subprotocols = scope.get("subprotocols", [])
    if len(subprotocols) >= 2 and subprotocols[0] == GATEWAY_CONFIG.JWT_SUBPROTOCOL:
        return subprotocols[1]
    return None


@database_sync_to_async
def get_user_from_token(token: str):
    """
    Validate JWT access token and load the user.

    Returns:
        Active User, or AnonymousUser
    """
    try:
        access_token = AccessToken(token)
    except TokenError as e:
        logger.warning(f"Invalid JWT token on WebSocket handshake: {e}")
        return AnonymousUser()

    user_id = access_token.get(api_settings.USER_ID_CLAIM)
    user = get_user_model().objects.filter(id=user_id, is_active=True).first()
    if user is None:
        logger.warning(f"No active user {user_id} for WebSocket token")
        return AnonymousUser()
    return user


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    Extracts the JWT, validates it and attaches the user to the scope.
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = (
            get_token_from_query(scope)
            or get_token_from_header(scope)
            or get_token_from_subprotocol(scope)
        )
        scope["user"] = await get_user_from_token(token) if token else AnonymousUser()
        return await super().__call__(scope, receive, send)
