from datetime import datetime, date, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def local_now(timezone: str) -> datetime:
    """Naive wall-clock time in ``timezone`` (falls back to UTC)."""
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        tz = ZoneInfo("UTC")
    return datetime.now(tz).replace(tzinfo=None)


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def at_time(d: date, t: time) -> datetime:
    return datetime.combine(d, t)


def get_range(end: date, days: int) -> tuple[date, date]:
    start = end - timedelta(days=max(days, 1) - 1)
    return start, end
