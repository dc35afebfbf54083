"""
Users: registration (idempotent by email), profile reads/updates, donor search, admin role/status changes.

role and status are store-of-record: guards re-read them on every privileged call.
"""
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from vein.core.constants import ROLE_DONOR, USER_ROLES, USER_STATUS_ACTIVE, USER_STATUSES
from vein.core.errors import ValidationError
from vein.models.user import User
from vein.services.auth_service import require_self

# Fields a user may change on their own profile
SELF_EDITABLE_FIELDS = ("name", "avatar", "blood_group", "district", "upazila")


def to_dict(row: User) -> dict[str, Any]:
    return {
        "_id": row.id,
        "id": row.id,
        "name": row.name,
        "email": row.email,
        "avatar": row.avatar,
        "bloodGroup": row.blood_group,
        "district": row.district,
        "upazila": row.upazila,
        "role": row.role,
        "status": row.status,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


def get_by_email(db: Session, email: str | None) -> User | None:
    if not email:
        return None
    return db.query(User).filter(User.email == email).first()


def current_role(db: Session, email: str | None) -> str | None:
    """Role as stored right now (lower-cased), or None for unknown users."""
    row = get_by_email(db, email)
    if row is None or not row.role:
        return None
    return row.role.strip().lower()


def register(db: Session, fields: dict[str, Any]) -> dict[str, Any]:
    """Create a user with role=donor, status=active. Existing email returns insertedId None."""
    email = (fields.get("email") or "").strip()
    if not email:
        raise ValidationError("email is required")
    if get_by_email(db, email) is not None:
        return {"message": "user already exists", "insertedId": None}
    row = User(
        email=email,
        name=fields.get("name"),
        avatar=fields.get("avatar"),
        blood_group=fields.get("blood_group"),
        district=fields.get("district"),
        upazila=fields.get("upazila"),
        role=ROLE_DONOR,
        status=USER_STATUS_ACTIVE,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"insertedId": row.id}


def list_users(db: Session, status: str | None = None) -> list[User]:
    q = db.query(User)
    if status:
        q = q.filter(func.lower(func.trim(User.status)) == status.strip().lower())
    return q.order_by(User.created_at.desc(), User.id.desc()).all()


def search_donors(
    db: Session,
    blood_group: str | None = None,
    district: str | None = None,
    upazila: str | None = None,
) -> list[User]:
    """Active donors, each filter optional and exact."""
    q = db.query(User).filter(
        func.lower(func.trim(User.role)) == ROLE_DONOR,
        func.lower(func.trim(User.status)) == USER_STATUS_ACTIVE,
    )
    if blood_group:
        q = q.filter(User.blood_group == blood_group)
    if district:
        q = q.filter(User.district == district)
    if upazila:
        q = q.filter(User.upazila == upazila)
    return q.order_by(User.id.asc()).all()


def update_self(db: Session, caller_email: str, email: str, patch: dict[str, Any]) -> dict[str, int]:
    """Profile update by the user themself. role, status, email and id are never applied."""
    require_self(caller_email, email)
    row = get_by_email(db, email)
    if row is None:
        return {"matchedCount": 0, "modifiedCount": 0}
    modified = 0
    for field in SELF_EDITABLE_FIELDS:
        if field in patch and getattr(row, field) != patch[field]:
            setattr(row, field, patch[field])
            modified = 1
    db.commit()
    return {"matchedCount": 1, "modifiedCount": modified}


def update_role_status(db: Session, user_id: int, role: str | None = None, status: str | None = None) -> dict[str, int]:
    """Privileged path: the only way role/status change."""
    role = role.strip().lower() if role else None
    status = status.strip().lower() if status else None
    if role is not None and role not in USER_ROLES:
        raise ValidationError(f"Invalid role '{role}'")
    if status is not None and status not in USER_STATUSES:
        raise ValidationError(f"Invalid status '{status}'")
    row = db.get(User, user_id)
    if row is None:
        return {"matchedCount": 0, "modifiedCount": 0}
    modified = 0
    if role is not None and row.role != role:
        row.role = role
        modified = 1
    if status is not None and row.status != status:
        row.status = status
        modified = 1
    db.commit()
    return {"matchedCount": 1, "modifiedCount": modified}
