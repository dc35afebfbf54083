"""Runs hourly: delete notifications older than the retention window (30 days), read or unread."""
import logging

from vein.db.session import SessionLocal
from vein.services.notification_service import purge_expired

logger = logging.getLogger(__name__)


def run_notification_retention_job() -> None:
    db = SessionLocal()
    try:
        purge_expired(db)
    except Exception as e:
        logger.exception("Notification retention job failed: %s", e)
        db.rollback()
    finally:
        db.close()
