"""Services combining repositories: unread counts, feed, daily logs."""

from .unread import UnreadCalculator, count_unread, is_unread
from .feed import FeedService, ThreadSummary
from .daily_log import DailyLogService, DailyLogAutosaver, ParseStatus, match_weather

__all__ = [
    "UnreadCalculator",
    "count_unread",
    "is_unread",
    "FeedService",
    "ThreadSummary",
    "DailyLogService",
    "DailyLogAutosaver",
    "ParseStatus",
    "match_weather",
]
