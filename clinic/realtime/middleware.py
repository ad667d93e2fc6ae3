"""
WebSocket authentication with a JWT access token.

Browsers cannot set headers on a WebSocket handshake, so the token is
read from the ``token`` query parameter. A session user set by
``AuthMiddlewareStack`` is kept when no token is given.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken


@database_sync_to_async
def user_for_token(raw: str):
    try:
        token = AccessToken(raw)
    except TokenError:
        return AnonymousUser()
    User = get_user_model()
    return User.objects.filter(pk=token.get("user_id"), is_active=True).first() or AnonymousUser()


class JWTQueryAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get("query_string", b"").decode())
        raw = (query.get("token") or [None])[0]
        if raw:
            scope = dict(scope, user=await user_for_token(raw))
        return await super().__call__(scope, receive, send)
