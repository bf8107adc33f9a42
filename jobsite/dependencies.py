"""
Wiring of repositories and services around one storage backend.

The API resolves everything through `get_services()`; tests build their own
`Services` around a MemoryStorage and install it with `set_services()`.
"""

from dataclasses import dataclass
from typing import Optional

from .ai.log_parser import LogParserClient, get_log_parser
from .repositories import (
    DailyLogRepository,
    MessageRepository,
    ProjectRepository,
    ReadLedger,
    ScheduleRepository,
)
from .services import DailyLogAutosaver, DailyLogService, FeedService, UnreadCalculator
from .storage import StoragePort, get_storage
from .utils.datetime_utils import Clock


@dataclass
class Services:
    storage: StoragePort
    projects: ProjectRepository
    schedule: ScheduleRepository
    messages: MessageRepository
    daily_logs: DailyLogRepository
    read_ledger: ReadLedger
    unread: UnreadCalculator
    feed: FeedService
    daily_log_service: DailyLogService
    autosaver: DailyLogAutosaver

    @classmethod
    def build(
        cls,
        storage: StoragePort,
        parser: Optional[LogParserClient] = None,
        clock: Optional[Clock] = None,
    ) -> "Services":
        projects = ProjectRepository(storage, clock)
        schedule = ScheduleRepository(storage, clock)
        messages = MessageRepository(storage, clock)
        daily_logs = DailyLogRepository(storage, clock)
        read_ledger = ReadLedger(storage, clock)
        daily_log_service = DailyLogService(daily_logs, schedule, parser or get_log_parser())

        return cls(
            storage=storage,
            projects=projects,
            schedule=schedule,
            messages=messages,
            daily_logs=daily_logs,
            read_ledger=read_ledger,
            unread=UnreadCalculator(messages, read_ledger, schedule),
            feed=FeedService(projects, schedule, messages, read_ledger),
            daily_log_service=daily_log_service,
            autosaver=DailyLogAutosaver(daily_log_service),
        )

    async def close(self) -> None:
        await self.autosaver.close()
        await self.daily_log_service.close()


_services: Optional[Services] = None


def get_services() -> Services:
    """Get the services singleton, built on the configured storage."""
    global _services
    if _services is None:
        _services = Services.build(get_storage())
    return _services


def set_services(services: Optional[Services]) -> None:
    global _services
    _services = services
