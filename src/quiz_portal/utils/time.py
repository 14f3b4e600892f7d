# File location: src/quiz_portal/utils/time.py
from datetime import datetime
from typing import Optional

import pytz


def get_utc_time() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(pytz.UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Treat naive datetimes as UTC and convert aware ones to UTC.

    SQLite hands back naive datetimes even when aware ones were stored, so
    every comparison against "now" goes through here first.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def seconds_between(start: datetime, end: datetime) -> int:
    return int(round((ensure_utc(end) - ensure_utc(start)).total_seconds()))
