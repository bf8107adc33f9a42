"""
Repository classes for jobsite collections.

Each repository handles CRUD and lookups for its entity type on top of an
injected storage backend.
"""

from .base import CollectionKeys, CollectionRepository
from .projects import ProjectRepository
from .schedule import ScheduleRepository
from .messages import MessageRepository
from .daily_logs import DailyLogRepository
from .read_ledger import ReadLedger

__all__ = [
    "CollectionKeys",
    "CollectionRepository",
    "ProjectRepository",
    "ScheduleRepository",
    "MessageRepository",
    "DailyLogRepository",
    "ReadLedger",
]
