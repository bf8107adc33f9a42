"""Utility modules for Jobsite."""

from .datetime_utils import (
    Clock,
    utc_now,
    get_local_tz,
    get_local_today,
    validate_calendar_date,
    to_aware_utc,
    format_relative_timestamp,
    pluralize,
)

__all__ = [
    "Clock",
    "utc_now",
    "get_local_tz",
    "get_local_today",
    "validate_calendar_date",
    "to_aware_utc",
    "format_relative_timestamp",
    "pluralize",
]
