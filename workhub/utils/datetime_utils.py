"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- The attendance day is the calendar date in settings.TZ.
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from workhub.core.config import settings

UTC = timezone.utc


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the local reference zone. Naive datetimes are treated as UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(local_tz())


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 with the local offset. Used for API response datetime fields."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def attendance_day(value: Optional[Union[datetime, date]] = None) -> date:
    """
    Attendance day key for a moment in time (default now).

    A plain date is returned unchanged; a datetime is reduced to its local calendar date.
    """
    if value is None:
        value = now_utc()
    if isinstance(value, datetime):
        return to_local(value).date()
    return value


def anchor_timestamp(day: date, now: Optional[datetime] = None) -> datetime:
    """
    Timestamp for an action on `day`: the day's date with the current local time of day.

    Returns a UTC datetime. For today this equals `now`; for any other day it keeps
    the wall-clock time but moves it onto that calendar date.
    """
    local_now = to_local(now or now_utc())
    wall_clock = time(
        local_now.hour, local_now.minute, local_now.second, local_now.microsecond
    )
    return datetime.combine(day, wall_clock, tzinfo=local_tz()).astimezone(UTC)


def elapsed_seconds(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole seconds from start to end (floored), 0 if either is missing."""
    if start is None or end is None:
        return 0
    delta = ensure_utc(end) - ensure_utc(start)
    return int(delta.total_seconds() // 1)
