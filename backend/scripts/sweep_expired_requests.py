#!/usr/bin/env python3
"""Expire every pending donation request dated before today (same sweep that list endpoints run).
Run from backend: python scripts/sweep_expired_requests.py [--email owner@example.com]
"""
import argparse
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from vein.db.session import SessionLocal
from vein.services.donation_request_service import sweep_expired


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default=None, help="only this requester's requests")
    args = parser.parse_args()
    db = SessionLocal()
    try:
        updated = sweep_expired(db, owner_email=args.email)
        print(f"Expired {updated} pending request(s).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
