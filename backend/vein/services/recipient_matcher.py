"""
Recipient selection for lifecycle events.

Recipients for a new request = active donors with the same blood group and district
∪ all active admins ∪ all active volunteers. Role/status compare case-insensitively;
blood group and district are exact. Empty result is valid.
"""
from typing import Iterable, Protocol

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from vein.core.constants import ROLE_ADMIN, ROLE_DONOR, ROLE_VOLUNTEER, USER_STATUS_ACTIVE
from vein.models.user import User

STAFF_ROLES = (ROLE_ADMIN, ROLE_VOLUNTEER)


class Candidate(Protocol):
    email: str
    role: str
    status: str
    blood_group: str | None
    district: str | None


def _norm(value: str | None) -> str:
    return (value or "").strip().lower()


def _stored(column):
    """SQL side of _norm, so the loader never drops a row the matcher would accept."""
    return func.lower(func.trim(column))


def _dedupe(emails: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for e in emails:
        if e and e not in seen:
            seen.add(e)
            out.append(e)
    return out


def match_recipients(users: Iterable[Candidate], blood_group: str | None, district: str | None) -> list[str]:
    """Pure selection over candidate users. Returns de-duplicated emails in input order."""
    selected = []
    for u in users:
        if _norm(u.status) != USER_STATUS_ACTIVE:
            continue
        role = _norm(u.role)
        if role in STAFF_ROLES:
            selected.append(u.email)
        elif role == ROLE_DONOR and blood_group and district and u.blood_group == blood_group and u.district == district:
            selected.append(u.email)
    return _dedupe(selected)


def match_staff(users: Iterable[Candidate]) -> list[str]:
    """Active admins and volunteers only (funding events)."""
    return _dedupe(
        u.email for u in users if _norm(u.status) == USER_STATUS_ACTIVE and _norm(u.role) in STAFF_ROLES
    )


def load_candidates(db: Session, blood_group: str | None, district: str | None) -> list[User]:
    """Rows that could match: staff of any status plus donors with the exact blood group and district."""
    role = _stored(User.role)
    return (
        db.query(User)
        .filter(
            or_(
                role.in_(STAFF_ROLES),
                (role == ROLE_DONOR) & (User.blood_group == blood_group) & (User.district == district),
            )
        )
        .order_by(User.id.asc())
        .all()
    )


def recipients_for_request(db: Session, blood_group: str | None, district: str | None) -> list[str]:
    return match_recipients(load_candidates(db, blood_group, district), blood_group, district)


def recipients_for_staff(db: Session) -> list[str]:
    rows = db.query(User).filter(_stored(User.role).in_(STAFF_ROLES)).order_by(User.id.asc()).all()
    return match_staff(rows)
