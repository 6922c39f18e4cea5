"""
WebSocket authentication from the ``token`` query parameter.

Browsers cannot set an ``Authorization`` header on a WebSocket
handshake, so clients pass ``?token=<key or jwt>`` instead.  The value
is tried as a DRF token first and then as a JWT access token.  Falls
back to whatever the session middleware resolved.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError


@database_sync_to_async
def user_for_token(raw: str):
    token = Token.objects.select_related('user').filter(key=raw).first()
    if token:
        return token.user if token.user.is_active else None
    auth = JWTAuthentication()
    try:
        user = auth.get_user(auth.get_validated_token(raw))
    except (InvalidToken, TokenError):
        return None
    return user if user.is_active else None


class QueryTokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        params = parse_qs(scope.get('query_string', b'').decode())
        raw = (params.get('token') or [''])[0]
        if raw:
            user = await user_for_token(raw)
            if user is not None:
                scope = dict(scope, user=user)
        return await super().__call__(scope, receive, send)
