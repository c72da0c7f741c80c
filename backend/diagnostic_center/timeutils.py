"""Business-timezone helpers.

All timestamps are stored in UTC. "Today" and date-only filter bounds are
interpreted in the configured business timezone and converted to UTC before
they reach a query.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz

from diagnostic_center.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _zone(tz_name: str):
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValidationError(f"Unknown timezone: {tz_name}") from exc


def day_window(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """Return the [start, end] UTC instants of a local calendar day."""
    tz = _zone(tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day, time.max))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def today_window(tz_name: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    now = now or utcnow()
    local_today = now.astimezone(_zone(tz_name)).date()
    return day_window(local_today, tz_name)


def parse_range_bound(value: Optional[str], tz_name: str, end: bool = False) -> Optional[datetime]:
    """Parse a filter bound into a UTC datetime.

    A bare date covers the whole local day (start for the lower bound, end of
    day for the upper one). Naive datetimes are read as business-local time.
    """
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    try:
        if len(raw) == 10:
            start, stop = day_window(date.fromisoformat(raw), tz_name)
            return stop if end else start
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {raw}") from exc
    if parsed.tzinfo is None:
        parsed = _zone(tz_name).localize(parsed)
    return parsed.astimezone(timezone.utc)


def seconds_until(hour: int, minute: int, tz_name: str, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` to the next local ``hour:minute``."""
    tz = _zone(tz_name)
    now = (now or utcnow()).astimezone(tz)
    target = tz.localize(datetime.combine(now.date(), time(hour, minute)))
    if target <= now:
        target = tz.localize(datetime.combine(now.date() + timedelta(days=1), time(hour, minute)))
    return (target - now).total_seconds()
