"""
Notification fan-out and read state.

fan_out / notify_one are best-effort: any failure is logged and swallowed so the operation that
triggered them (request creation, status change, funding) never fails or rolls back because of a
notification. No queue, no retry: a dropped notification is lost.

Retention (30 days from creation, read or not) is enforced by purge_expired, run from the scheduler,
never per request.
"""
import logging
from datetime import timedelta
from typing import Any, Callable, Iterable

from sqlalchemy.orm import Session

from vein.core.clock import utcnow
from vein.core.constants import NOTIFICATION_RETENTION_DAYS
from vein.core.errors import ValidationError
from vein.models.notification import Notification
from vein.services.auth_service import require_self

logger = logging.getLogger(__name__)


def to_dict(row: Notification) -> dict[str, Any]:
    return {
        "_id": row.id,
        "id": row.id,
        "email": row.email,
        "message": row.message,
        "link": row.link,
        "isRead": bool(row.is_read),
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }


# --- Fan-out ---


def fan_out(db: Session, recipients: Iterable[str], message: str, link: str | None = None) -> int:
    """Insert one unread notification per recipient in a single commit. Returns count inserted (0 on failure)."""
    try:
        now = utcnow()
        rows = [
            Notification(email=email, message=message, link=link, is_read=False, created_at=now)
            for email in recipients
        ]
        if not rows:
            return 0
        db.add_all(rows)
        db.commit()
        logger.info("Fan-out: %s notifications inserted (%s)", len(rows), message[:60])
        return len(rows)
    except Exception as e:
        logger.exception("Fan-out failed, notifications dropped: %s", e)
        db.rollback()
        return 0


def notify_one(db: Session, email: str, message: str, link: str | None = None) -> int:
    """Single-recipient path (status changes). Same guarantees as fan_out."""
    if not email:
        return 0
    return fan_out(db, [email], message, link)


def run_in_new_session(session_factory: Callable[[], Session], fn: Callable[..., Any], *args: Any) -> None:
    """Run fn(db, *args) with its own session; used for post-response background work."""
    db = session_factory()
    try:
        fn(db, *args)
    except Exception as e:
        logger.exception("Background notification task failed: %s", e)
    finally:
        db.close()


# --- Direct create / read state ---


def create_notification(db: Session, email: str, message: str, link: str | None = None) -> Notification:
    email = (email or "").strip()
    message = (message or "").strip()
    if not email or not message:
        raise ValidationError("email and message are required")
    row = Notification(email=email, message=message, link=link, is_read=False)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_for_user(db: Session, caller_email: str, target_email: str | None, *, unread_only: bool = False) -> list[Notification]:
    """Newest first. Only the recipient may list their notifications."""
    require_self(caller_email, target_email)
    q = db.query(Notification).filter(Notification.email == target_email)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def unread_count(db: Session, caller_email: str, target_email: str | None) -> int:
    require_self(caller_email, target_email)
    return (
        db.query(Notification)
        .filter(Notification.email == target_email, Notification.is_read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: int) -> dict[str, int]:
    """Idempotent: sets is_read regardless of current value."""
    row = db.get(Notification, notification_id)
    if row is None:
        return {"matchedCount": 0, "modifiedCount": 0}
    modified = 0 if row.is_read else 1
    row.is_read = True
    db.commit()
    return {"matchedCount": 1, "modifiedCount": modified}


def mark_all_read(db: Session, caller_email: str, target_email: str | None) -> dict[str, int]:
    require_self(caller_email, target_email)
    updated = (
        db.query(Notification)
        .filter(Notification.email == target_email, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"modifiedCount": updated}


# --- Retention ---


def purge_expired(db: Session, *, retention_days: int = NOTIFICATION_RETENTION_DAYS) -> int:
    """Delete notifications created more than retention_days ago. Returns deleted count."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = (
        db.query(Notification)
        .filter(Notification.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Notification retention: deleted %s rows older than %s days", deleted, retention_days)
    return deleted
