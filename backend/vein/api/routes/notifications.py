"""
User notifications API: persisted read state.

Recipient identified by ?email= and must equal the session email for list / unread-count / mark-all-read.
Supports: direct create, list (with unread filter), unread count, mark one read, mark all read.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from vein.api.deps import Identity, get_identity
from vein.api.schemas import CamelModel
from vein.db.session import get_db
from vein.services import notification_service

router = APIRouter()
logger = logging.getLogger(__name__)


class CreateNotificationRequest(CamelModel):
    email: str
    message: str
    link: str | None = None


# --- Create ---


@router.post("/notifications")
def create_notification(
    body: CreateNotificationRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    row = notification_service.create_notification(db, body.email, body.message, body.link)
    return {"insertedId": row.id}


# --- List ---


@router.get("/notifications")
def list_notifications(
    email: str | None = Query(None),
    unread_only: bool = Query(False, alias="unread"),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """Notifications for the caller, newest first. Use unread=true for the unread ones only."""
    rows = notification_service.list_for_user(db, identity.email, email, unread_only=unread_only)
    return [notification_service.to_dict(r) for r in rows]


@router.get("/notifications/unread-count")
def notifications_unread_count(
    email: str | None = Query(None),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return {"count": notification_service.unread_count(db, identity.email, email)}


# --- Mark all read ---


@router.patch("/notifications/mark-all-read/user")
def mark_all_read(
    email: str | None = Query(None),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    return notification_service.mark_all_read(db, identity.email, email)


# --- Mark one read ---


@router.patch("/notifications/{notification_id}")
def mark_notification_read(
    notification_id: int,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    """Mark a single notification as read (idempotent)."""
    return notification_service.mark_read(db, notification_id)
