"""
JWT authentication that accepts the access token from a header or a cookie.
"""

import logging

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)


def access_cookie_name():
    return settings.SIMPLE_JWT.get('AUTH_COOKIE', 'access_token')


def refresh_cookie_name():
    return settings.SIMPLE_JWT.get('AUTH_COOKIE_REFRESH', 'refresh_token')


class CookieJWTAuthentication(JWTAuthentication):
    """
    Resolve the caller from a signed access token.

    Lookup order:
    1. ``Authorization: Bearer <token>`` header (invalid tokens are rejected with 401)
    2. ``access_token`` cookie set at login (invalid or expired cookies are
       treated as an anonymous request so public endpoints keep working)
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            return super().authenticate(request)

        raw_token = request.COOKIES.get(access_cookie_name())
        if not raw_token:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
        except InvalidToken as e:
            logger.debug(f"Ignoring invalid access token cookie: {e}")
            return None

        return self.get_user(validated_token), validated_token
