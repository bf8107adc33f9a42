"""
Centralized datetime and timezone utilities.

Stored timestamps are timezone-aware UTC. Daily log dates are calendar days
in the configured site timezone.
"""

import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union
import pytz

from config import settings

Clock = Callable[[], datetime]

CALENDAR_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(pytz.UTC)


def get_local_tz() -> pytz.BaseTzInfo:
    """Get the configured site timezone."""
    return pytz.timezone(settings.timezone)


def get_local_today() -> str:
    """Today's date on site as YYYY-MM-DD."""
    return datetime.now(get_local_tz()).strftime("%Y-%m-%d")


def validate_calendar_date(value: str) -> str:
    """
    Check that a YYYY-MM-DD string names a real day.

    Returns the value unchanged.

    Raises:
        ValueError: If the format is wrong or the day does not exist
    """
    if not isinstance(value, str) or not CALENDAR_DATE_RE.fullmatch(value):
        raise ValueError(f"Date must be YYYY-MM-DD, got {value!r}")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Not a calendar date: {value} ({e})") from e
    return value


def to_aware_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Normalize a datetime or ISO-8601 string to timezone-aware UTC.

    Naive values are assumed to already be UTC.
    """
    if value is None:
        return None

    if isinstance(value, str):
        # fromisoformat only accepts a trailing Z from Python 3.11
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))

    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def format_relative_timestamp(timestamp: Union[datetime, str], now: Optional[datetime] = None) -> str:
    """
    Format a timestamp the way the feed shows it.

    Examples: "Just now", "5m ago", "3:04 PM", "Yesterday at 9:15 AM",
    "Mar 3 at 2:00 PM", "Dec 30, 2025 at 8:00 AM".
    """
    local_tz = get_local_tz()
    moment = to_aware_utc(timestamp).astimezone(local_tz)
    current = (to_aware_utc(now) if now else utc_now()).astimezone(local_tz)

    diff = current - moment
    minutes = int(diff.total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"

    time_str = moment.strftime("%I:%M %p").lstrip("0")
    if moment.date() == current.date():
        return time_str
    if moment.date() == (current - timedelta(days=1)).date():
        return f"Yesterday at {time_str}"

    day_str = f"{moment.strftime('%b')} {moment.day}"
    if moment.year == current.year:
        return f"{day_str} at {time_str}"
    return f"{day_str}, {moment.year} at {time_str}"


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """pluralize(1, "crew") -> "1 crew", pluralize(3, "delivery", "deliveries") -> "3 deliveries"."""
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"
