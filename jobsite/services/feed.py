"""Feed of active threads across a user's projects."""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..models.entities import JobsiteModel, Message
from ..models.threads import ThreadRef
from ..repositories import MessageRepository, ProjectRepository, ReadLedger, ScheduleRepository
from .unread import count_unread

logger = logging.getLogger(__name__)

GENERAL_THREAD_TITLE = "General"


class ThreadSummary(JobsiteModel):
    """One row of the feed."""
    project_id: str
    project_name: str
    schedule_item_id: Optional[str] = None
    title: str
    messages: List[Message] = Field(default_factory=list)
    participants: List[str] = Field(default_factory=list)
    unread_count: int = 0
    last_activity: datetime

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None


def distinct_authors(messages: List[Message]) -> List[str]:
    """Author names in order of first appearance."""
    seen: List[str] = []
    for msg in messages:
        if msg.author_name not in seen:
            seen.append(msg.author_name)
    return seen


class FeedService:
    """Builds the per-user thread feed."""

    def __init__(
        self,
        projects: ProjectRepository,
        schedule: ScheduleRepository,
        messages: MessageRepository,
        read_ledger: ReadLedger,
    ):
        self.projects = projects
        self.schedule = schedule
        self.messages = messages
        self.read_ledger = read_ledger

    async def get_threads_for_user(self, user_id: str, project_ids: List[str]) -> List[ThreadSummary]:
        """
        Every thread with at least one message in the given projects.

        Sorted by most recent activity first. Orphaned threads of deleted
        schedule items are left out.
        """
        summaries: List[ThreadSummary] = []

        for project_id in project_ids:
            project = await self.projects.get_by_id(project_id)
            if project is None:
                logger.debug(f"Skipping unknown project {project_id} in feed for {user_id}")
                continue

            threads = [(ThreadRef.of(project_id), GENERAL_THREAD_TITLE)]
            for item in await self.schedule.get_for_project(project_id):
                threads.append((ThreadRef.of(project_id, item.id), item.title))

            for thread, title in threads:
                summary = await self._summarize(user_id, thread, title, project.name)
                if summary is not None:
                    summaries.append(summary)

        summaries.sort(key=lambda s: s.last_activity, reverse=True)
        return summaries

    async def _summarize(
        self,
        user_id: str,
        thread: ThreadRef,
        title: str,
        project_name: str,
    ) -> Optional[ThreadSummary]:
        messages = await self.messages.get_for_thread(thread)
        if not messages:
            return None

        last_read = await self.read_ledger.get_thread_last_read(user_id, thread)
        return ThreadSummary(
            project_id=thread.project_id,
            project_name=project_name,
            schedule_item_id=thread.schedule_item_id,
            title=title,
            messages=messages,
            participants=distinct_authors(messages),
            unread_count=count_unread(messages, user_id, last_read),
            last_activity=messages[-1].created_at,
        )
