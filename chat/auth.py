"""
Bearer-token identity for the chat.

Requests and socket connections identify themselves with a JWT carrying the
member's ``username`` (or ``sub``) and ``role``. Tokens are issued by the
community's auth component, or locally by ``manage.py issue_chat_token``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

from django.conf import settings
from django.http import JsonResponse
from jose import JWTError, jwt

from .errors import AuthenticationError
from .models import DEFAULT_ROLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    username: str
    role: str = DEFAULT_ROLE


def create_access_token(username: str, role: str = DEFAULT_ROLE, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.CHAT_TOKEN_TTL_MINUTES))
    claims = {"sub": username, "username": username, "role": role, "exp": expire}
    return jwt.encode(claims, settings.CHAT_JWT_SECRET, algorithm=settings.CHAT_JWT_ALGORITHM)


def decode_token(token: str) -> Identity:
    """Resolve a raw JWT into an Identity, raising AuthenticationError."""
    try:
        payload = jwt.decode(token, settings.CHAT_JWT_SECRET, algorithms=[settings.CHAT_JWT_ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid token")

    username = payload.get("username") or payload.get("sub")
    if not username or not isinstance(username, str):
        raise AuthenticationError("Invalid token")
    role = payload.get("role") or DEFAULT_ROLE
    return Identity(username=username, role=role)


def identity_from_header(auth_header: Optional[str]) -> Identity:
    if not auth_header:
        raise AuthenticationError("No token provided")
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid auth header")
    return decode_token(parts[1])


def token_required(view_func):
    """
    Resolve the bearer token before running ``view_func``.

    The resolved Identity is available as ``request.chat_identity``;
    requests without a valid token get a 401 JSON response.
    """

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        try:
            request.chat_identity = identity_from_header(request.headers.get("Authorization"))
        except AuthenticationError as exc:
            logger.debug(f"Rejected {request.method} {request.path}: {exc}")
            return JsonResponse({"error": exc.message}, status=exc.status_code)
        return view_func(request, *args, **kwargs)

    return _wrapped
