# backend/gifting/services/delivery/clock.py
"""
India Standard Time source.

The platform only delivers inside India, so every "today" and "minutes
until close" calculation happens on the IST wall clock (UTC+05:30, no DST).
All of it goes through a Clock so that the two always agree.
"""

import re
from datetime import date, datetime, timedelta, timezone

IST = timezone(timedelta(hours=5, minutes=30), "IST")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_STORED_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class Clock:
    """Source of the current IST wall-clock time."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()

    def minutes_since_midnight(self) -> int:
        now = self.now()
        return now.hour * 60 + now.minute


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(IST)


class FixedClock(Clock):
    """Clock frozen at a given instant (naive values are taken as IST)."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=IST)
        self._now = instant.astimezone(IST)

    def now(self) -> datetime:
        return self._now


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a FixedClock."""
    return _system_clock


def parse_local_date(value: str) -> date:
    """
    Parse "YYYY-MM-DD" as a calendar date.

    No timezone is involved: the string names the IST delivery day as is.
    """
    if not value or not _DATE_RE.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return date.fromisoformat(value)


def day_of_week(d: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(value.strip()) if value else None
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def stored_time_to_minutes(value: str) -> int:
    """
    Minutes since midnight for a stored "H:MM" or "HH:MM" value.

    Vendor hours are written outside this service and are not always
    zero-padded, so they are read more loosely than admin input.
    """
    match = _STORED_TIME_RE.match(value.strip()) if value else None
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours < 24 and minutes < 60:
            return hours * 60 + minutes
    raise ValueError(f"Invalid stored time {value!r}")


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
