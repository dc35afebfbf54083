"""
Users API: registration, donor search, profile, role lookup and the admin role/status path.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from vein.api.deps import Identity, get_identity, require_admin, require_volunteer_or_admin
from vein.api.schemas import CamelModel
from vein.db.session import get_db
from vein.services import user_service

router = APIRouter()
logger = logging.getLogger(__name__)


class RegisterUserRequest(CamelModel):
    email: str
    name: str | None = None
    avatar: str | None = None
    blood_group: str | None = None
    district: str | None = None
    upazila: str | None = None


class UpdateProfileRequest(CamelModel):
    name: str | None = None
    avatar: str | None = None
    blood_group: str | None = None
    district: str | None = None
    upazila: str | None = None


class UpdateRoleStatusRequest(CamelModel):
    role: str | None = None
    status: str | None = None


@router.post("/users")
def register_user(body: RegisterUserRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Idempotent by email: an existing user is returned as insertedId null, not an error."""
    return user_service.register(db, body.fields_set())


@router.get("/users")
def list_users(
    status: str | None = Query(None),
    identity: Identity = Depends(require_volunteer_or_admin),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    return [user_service.to_dict(u) for u in user_service.list_users(db, status=status)]


@router.get("/donors")
def search_donors(
    blood_group: str | None = Query(None, alias="bloodGroup"),
    district: str | None = Query(None),
    upazila: str | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """Active donors matching the optional filters."""
    rows = user_service.search_donors(db, blood_group=blood_group, district=district, upazila=upazila)
    return [user_service.to_dict(u) for u in rows]


@router.get("/users/role/{email}")
def get_user_role(
    email: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    row = user_service.get_by_email(db, email)
    return {"role": row.role if row else None}


@router.patch("/users/update/{user_id}")
def update_user_role_status(
    user_id: int,
    body: UpdateRoleStatusRequest,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    """Admin only: the single path that changes role or status."""
    result = user_service.update_role_status(db, user_id, role=body.role, status=body.status)
    logger.info("User %s role/status updated by %s: %s", user_id, identity.email, body.fields_set())
    return result


@router.get("/users/{email}")
def get_user(
    email: str,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, Any] | None:
    row = user_service.get_by_email(db, email)
    return user_service.to_dict(row) if row else None


@router.patch("/users/{email}")
def update_user_profile(
    email: str,
    body: UpdateProfileRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    """Self-update; role, status and email are not accepted here."""
    return user_service.update_self(db, identity.email, email, body.fields_set())
