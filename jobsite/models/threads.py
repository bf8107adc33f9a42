"""
Thread references.

A thread is a message stream scoped to a project and, optionally, one
schedule item. Callers pass these references around instead of raw
"project:item" strings so the general thread and an item can never be
confused.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


GENERAL_MARKER = "general"


@dataclass(frozen=True)
class ThreadRef(ABC):
    """Base class for thread references."""

    project_id: str

    @property
    def schedule_item_id(self) -> Optional[str]:
        return None

    @property
    def is_general(self) -> bool:
        return self.schedule_item_id is None

    @property
    @abstractmethod
    def key(self) -> str:
        """Storage key for the read ledger."""

    @staticmethod
    def of(project_id: str, schedule_item_id: Optional[str] = None) -> "ThreadRef":
        """Build the reference for a (project, item-or-None) pair."""
        if schedule_item_id is None:
            return GeneralThread(project_id)
        return ItemThread(project_id, schedule_item_id)


@dataclass(frozen=True)
class GeneralThread(ThreadRef):
    """A project's general thread."""

    @property
    def key(self) -> str:
        return f"{self.project_id}:{GENERAL_MARKER}"


@dataclass(frozen=True)
class ItemThread(ThreadRef):
    """The thread attached to one schedule item."""

    item_id: str

    def __post_init__(self):
        if not self.item_id:
            raise ValueError("Item thread needs a schedule item id")

    @property
    def schedule_item_id(self) -> Optional[str]:
        return self.item_id

    @property
    def key(self) -> str:
        return f"{self.project_id}:item:{self.item_id}"
