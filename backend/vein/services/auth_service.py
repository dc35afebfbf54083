"""
Session tokens: package an upstream-authenticated identity into a signed, 1-hour JWT (HS256).

No credential check happens here. The token is transported as an HttpOnly cookie; its role claim,
if any, is never trusted for privileged decisions (see vein.api.deps).
"""
import logging
import time
from typing import Any

import jwt

from vein.config import settings
from vein.core.constants import JWT_ALGORITHM, SESSION_COOKIE_NAME, SESSION_TTL_SECONDS
from vein.core.errors import Forbidden, Unauthenticated, ValidationError

logger = logging.getLogger(__name__)


def issue_session(claims: dict[str, Any], *, secret: str | None = None, ttl_seconds: int = SESSION_TTL_SECONDS) -> str:
    """Sign identity claims into a session token. Requires a non-empty email claim."""
    email = str(claims.get("email") or "").strip()
    if not email:
        raise ValidationError("email is required to issue a session")
    now = int(time.time())
    payload = {k: v for k, v in claims.items() if k not in ("iat", "exp")}
    payload.update({"email": email, "iat": now, "exp": now + ttl_seconds})
    token = jwt.encode(payload, secret or settings.access_token_secret, algorithm=JWT_ALGORITHM)
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def verify(token: str | None, *, secret: str | None = None) -> dict[str, Any]:
    """Decode a session token. Raises Unauthenticated when absent, malformed, expired or without email."""
    if not token:
        raise Unauthenticated()
    try:
        claims = jwt.decode(token, secret or settings.access_token_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired session token")
        raise Unauthenticated()
    except jwt.InvalidTokenError as e:
        logger.debug("Rejected invalid session token: %s", e)
        raise Unauthenticated()
    if not str(claims.get("email") or "").strip():
        raise Unauthenticated()
    return claims


def cookie_options() -> dict[str, Any]:
    """Cookie attributes for the session credential. Secure + SameSite=None only in production."""
    return {
        "key": SESSION_COOKIE_NAME,
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "strict",
        "path": "/",
    }


def require_self(caller_email: str, target_email: str | None) -> None:
    """Ownership check: the verified caller must be the resource's owner (exact email match)."""
    if not target_email or caller_email != target_email:
        raise Forbidden()
