"""
Unread counts for threads and channels.

A message is unread for a user when someone else wrote it and it was
created strictly after the user's last read mark for the surface being
counted. A surface that was never viewed has no mark, so every message
from someone else counts.

Thread counts and channel counts use separate read ledgers. The total shown
on the feed badge sums thread counts only: channels are overlapping views of
the same messages and would double count.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.entities import Message
from ..models.threads import ThreadRef
from ..repositories import MessageRepository, ReadLedger, ScheduleRepository
from ..tagging.channels import CHANNELS, ChannelConfig, ChannelType, filter_channel_messages
from ..utils.datetime_utils import pluralize, to_aware_utc

logger = logging.getLogger(__name__)


def is_unread(message: Message, user_id: str, last_read: Optional[datetime]) -> bool:
    """Whether a message counts as unread for a user given a read mark."""
    if message.author_id == user_id:
        return False
    if last_read is None:
        return True
    # Equal timestamps count as seen
    return to_aware_utc(message.created_at) > last_read


def count_unread(messages: Iterable[Message], user_id: str, last_read: Optional[datetime]) -> int:
    return sum(1 for msg in messages if is_unread(msg, user_id, last_read))


class UnreadCalculator:
    """Computes per-thread, per-channel and per-user unread counts."""

    def __init__(
        self,
        messages: MessageRepository,
        read_ledger: ReadLedger,
        schedule: ScheduleRepository,
        channels: Sequence[ChannelConfig] = CHANNELS,
    ):
        self.messages = messages
        self.read_ledger = read_ledger
        self.schedule = schedule
        self.channels = channels

    async def get_unread_count_for_thread(self, user_id: str, thread: ThreadRef) -> int:
        last_read = await self.read_ledger.get_thread_last_read(user_id, thread)
        messages = await self.messages.get_for_thread(thread)
        return count_unread(messages, user_id, last_read)

    async def get_unread_counts_by_channel(self, user_id: str, project_id: str) -> Dict[str, int]:
        """
        Unread count for every registered channel in a project.

        Navigation channels have no messages and always report 0.
        """
        all_messages = await self.messages.get_all_for_project(project_id)
        read_marks = await self.read_ledger.get_channel_reads_for_user(user_id, project_id)

        counts: Dict[str, int] = {}
        for channel in self.channels:
            if channel.type == ChannelType.NAVIGATION:
                counts[channel.id] = 0
                continue

            channel_messages = filter_channel_messages(channel, all_messages)
            counts[channel.id] = count_unread(channel_messages, user_id, read_marks.get(channel.id))

        return counts

    async def get_unread_count_for_channel(self, user_id: str, project_id: str, channel_id: str) -> int:
        return (await self.get_unread_counts_by_channel(user_id, project_id)).get(channel_id, 0)

    async def get_unread_counts_for_items(self, user_id: str, project_id: str) -> Dict[str, int]:
        """Unread count per schedule item thread in a project."""
        counts: Dict[str, int] = {}
        for item in await self.schedule.get_for_project(project_id):
            counts[item.id] = await self.get_unread_count_for_thread(
                user_id, ThreadRef.of(project_id, item.id)
            )
        return counts

    async def get_unread_count_for_project(self, user_id: str, project_id: str) -> int:
        """General thread plus every schedule item thread."""
        total = await self.get_unread_count_for_thread(user_id, ThreadRef.of(project_id))
        item_counts = await self.get_unread_counts_for_items(user_id, project_id)
        return total + sum(item_counts.values())

    async def get_unread_counts_by_project(self, user_id: str, project_ids: List[str]) -> Dict[str, int]:
        return {
            project_id: await self.get_unread_count_for_project(user_id, project_id)
            for project_id in project_ids
        }

    async def get_total_unread_for_user(self, user_id: str, project_ids: List[str]) -> int:
        """Sum of thread unread counts across the user's projects."""
        counts = await self.get_unread_counts_by_project(user_id, project_ids)
        total = sum(counts.values())
        logger.debug(f"{user_id} has {pluralize(total, 'unread message')} across {pluralize(len(project_ids), 'project')}")
        return total
