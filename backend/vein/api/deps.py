"""
Access control dependencies: session identity plus role and ownership guards.

Role decisions always re-read the caller's User row; the token never carries a trusted role, so an
admin-driven role/status change takes effect on the next call without a re-login.
"""
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from vein.core.constants import ROLE_ADMIN, ROLE_VOLUNTEER, SESSION_COOKIE_NAME
from vein.core.errors import Forbidden
from vein.db.session import get_db
from vein.services import auth_service, user_service


@dataclass(frozen=True)
class Identity:
    email: str
    claims: dict[str, Any] = field(default_factory=dict)


def _token_from_request(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def get_identity(request: Request) -> Identity:
    """Verify the session credential and attach the identity to request.state."""
    claims = auth_service.verify(_token_from_request(request))
    identity = Identity(email=str(claims["email"]).strip(), claims=claims)
    request.state.identity = identity
    return identity


def require_admin(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)) -> Identity:
    if user_service.current_role(db, identity.email) != ROLE_ADMIN:
        raise Forbidden()
    return identity


def require_volunteer_or_admin(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)) -> Identity:
    if user_service.current_role(db, identity.email) not in (ROLE_VOLUNTEER, ROLE_ADMIN):
        raise Forbidden()
    return identity

