"""
Session endpoints: issue the signed session cookie from upstream identity claims, and clear it.
"""
from typing import Any

from fastapi import APIRouter, Body, Response

from vein.core.constants import SESSION_TTL_SECONDS
from vein.services import auth_service

router = APIRouter()


@router.post("/jwt")
def issue_jwt(response: Response, claims: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Package identity claims (at least email) into a 1-hour HttpOnly cookie."""
    token = auth_service.issue_session(claims)
    response.set_cookie(value=token, max_age=SESSION_TTL_SECONDS, **auth_service.cookie_options())
    return {"success": True}


@router.post("/logout")
def logout(response: Response) -> dict[str, Any]:
    """Expire the session cookie on the client. No server-side revocation."""
    opts = auth_service.cookie_options()
    response.delete_cookie(
        key=opts["key"],
        path=opts["path"],
        secure=opts["secure"],
        httponly=opts["httponly"],
        samesite=opts["samesite"],
    )
    return {"success": True}
