"""
Message repository.

Messages are append-only. Each one belongs to exactly one thread: a
project's general thread or the thread of one schedule item.
"""

import logging
from typing import List, Union

from ..models.entities import Message, Role
from ..models.threads import ThreadRef
from .base import CollectionKeys, CollectionRepository, generate_id

logger = logging.getLogger(__name__)


class MessageRepository(CollectionRepository):
    """Repository for chat messages."""

    collection_key = CollectionKeys.MESSAGES

    async def get_for_thread(self, thread: ThreadRef) -> List[Message]:
        """Messages in one thread, oldest first."""
        messages = [
            Message.model_validate(record)
            for record in await self._load()
            if record.get("projectId") == thread.project_id
            and record.get("scheduleItemId") == thread.schedule_item_id
        ]
        return sorted(messages, key=lambda msg: msg.created_at)

    async def get_all_for_project(self, project_id: str) -> List[Message]:
        """Every message in a project across all threads, oldest first."""
        messages = [
            Message.model_validate(record)
            for record in await self._load()
            if record.get("projectId") == project_id
        ]
        return sorted(messages, key=lambda msg: msg.created_at)

    async def create(
        self,
        thread: ThreadRef,
        author_id: str,
        author_name: str,
        author_role: Union[Role, str],
        content: str,
    ) -> Message:
        """Append a message to a thread."""
        message = Message(
            id=generate_id("msg"),
            project_id=thread.project_id,
            schedule_item_id=thread.schedule_item_id,
            author_id=author_id,
            author_name=author_name,
            author_role=Role(author_role),
            content=content,
            created_at=self.clock(),
        )

        async with self._write_lock():
            records = await self._load()
            records.append(message.to_storage())
            await self._save(records)

        logger.info(f"Message {message.id} posted to {thread.key} by {author_id}")
        return message
