"""
Reference clock. Donation dates are compared at day granularity in one timezone (DATE_TIMEZONE).
"""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from vein.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    """Current calendar date in the reference timezone; time of day is ignored."""
    return datetime.now(ZoneInfo(settings.date_timezone)).date()


def local_date(moment: datetime) -> date:
    """Calendar date of a timestamp in the reference timezone. Naive timestamps are taken as local."""
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(ZoneInfo(settings.date_timezone)).date()
