from .entities import (
    Role,
    ProjectStatus,
    ScheduleItemStatus,
    WeatherCondition,
    Project,
    ScheduleItem,
    Message,
    DailyLog,
    ParsedLogData,
    WeatherSummary,
    CrewEntry,
    DeliveryEntry,
    InspectionEntry,
    DelayEntry,
    WorkCompletedEntry,
)
from .threads import ThreadRef, GeneralThread, ItemThread

__all__ = [
    "Role",
    "ProjectStatus",
    "ScheduleItemStatus",
    "WeatherCondition",
    "Project",
    "ScheduleItem",
    "Message",
    "DailyLog",
    "ParsedLogData",
    "WeatherSummary",
    "CrewEntry",
    "DeliveryEntry",
    "InspectionEntry",
    "DelayEntry",
    "WorkCompletedEntry",
    "ThreadRef",
    "GeneralThread",
    "ItemThread",
]
