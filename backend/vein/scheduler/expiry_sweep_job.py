"""Optional (BACKGROUND_SWEEP_ENABLED): expire stale pending requests on a timer, in addition to sweep-on-read."""
import logging

from vein.db.session import SessionLocal
from vein.services.donation_request_service import sweep_expired

logger = logging.getLogger(__name__)


def run_expiry_sweep_job() -> None:
    db = SessionLocal()
    try:
        sweep_expired(db)
    except Exception as e:
        logger.exception("Expiry sweep job failed: %s", e)
        db.rollback()
    finally:
        db.close()
