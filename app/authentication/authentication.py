"""
DRF authentication classes.

JWTAuthentication (simplejwt) covers the Authorization: Bearer header used by
mobile and API clients. Browser clients receive the access token in a signed,
HTTP-only cookie at login; CookieJWTAuthentication reads it back.
"""

from __future__ import annotations

import logging

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication

logger = logging.getLogger(__name__)


class CookieJWTAuthentication(JWTAuthentication):
    """
    Authenticate with the access token stored in the signed auth cookie.

    A missing or tampered cookie means "not authenticated by this class";
    an expired or invalid token inside a valid cookie raises InvalidToken.
    """

    def authenticate(self, request):
        raw_token = request.get_signed_cookie(
            settings.AUTH_COOKIE_NAME,
            default=None,
            salt=settings.AUTH_COOKIE_SALT,
        )
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token

    def authenticate_header(self, request):
        return 'Cookie realm="api"'
