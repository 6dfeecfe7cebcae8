"""Time utilities (UTC timestamps, US market clock)."""

from datetime import datetime, timezone, tzinfo

import pytz

US_EASTERN = pytz.timezone("America/New_York")


def now_utc() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def to_iso(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> str:
    """ISO string with offset; naive values are read as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.isoformat()


def to_eastern(dt: datetime) -> datetime:
    """Convert datetime to US/Eastern (exchange local time)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(US_EASTERN)
