#!/usr/bin/env python3
"""Delete notifications older than the retention window (same as the hourly scheduler job).
Run from backend: python scripts/purge_notifications.py [--days 30]
"""
import argparse
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from vein.core.constants import NOTIFICATION_RETENTION_DAYS
from vein.db.session import SessionLocal
from vein.services.notification_service import purge_expired


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--days", type=int, default=NOTIFICATION_RETENTION_DAYS)
    args = parser.parse_args()
    db = SessionLocal()
    try:
        deleted = purge_expired(db, retention_days=args.days)
        print(f"Deleted {deleted} notification(s) older than {args.days} days.")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
