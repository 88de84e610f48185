"""
Time handling for patrol scheduling.

Provides the injectable clock used by the lifecycle code plus the parsing and
formatting helpers for the calendar-date, HH:MM and ISO-8601 values stored on
patrol records.
"""

import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional, Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_START_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in a configured IANA timezone."""

    def __init__(self, tz_name: str = "UTC"):
        self.tz_name = tz_name
        self.tz = resolve_timezone(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant. Used by tests and replays."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta: float) -> datetime:
        """Move the clock forward by a timedelta expressed as keyword args."""
        self.instant = self.instant + timedelta(**delta)
        return self.instant


def resolve_timezone(tz_name: str):
    """
    Resolve an IANA timezone name.

    Args:
        tz_name: Zone name such as "UTC" or "Africa/Nairobi"

    Returns:
        tzinfo instance

    Raises:
        ValueError: If the zone is unknown
    """
    if tz_name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e


def truncate_to_second(instant: datetime) -> datetime:
    """Drop sub-second precision from an instant."""
    return instant.replace(microsecond=0)


def parse_patrol_date(value: Any) -> Optional[date]:
    """
    Parse a patrol date.

    Accepts date objects, datetimes (date part is used) and ISO strings with
    or without a time component. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_start_time(value: Any) -> Optional[time]:
    """Parse an "HH:MM" start time. Returns None for empty or malformed values."""
    if value is None:
        return None
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        return None

    match = _START_TIME_RE.match(value.strip())
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 instant, accepting a trailing "Z" for UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_hours(value: Any) -> Optional[float]:
    """
    Parse a duration in hours.

    Returns None when the value is missing or not a finite number. Negative
    numbers are returned as-is; callers decide what they mean.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(hours):
        return None
    return hours


def format_start_time(value: Optional[time]) -> Optional[str]:
    """Format a start time as "HH:MM"."""
    if value is None:
        return None
    return value.strftime("%H:%M")


def format_instant(value: Optional[datetime]) -> Optional[str]:
    """Format an instant as ISO-8601."""
    if value is None:
        return None
    return value.isoformat()


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed time between two instants in hours, measured in UTC."""
    elapsed = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return elapsed.total_seconds() / 3600.0


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3, 0.125 -> 0.13)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor
