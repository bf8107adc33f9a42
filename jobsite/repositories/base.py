"""Shared plumbing for collection-backed repositories."""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..storage import StoragePort, get_storage
from ..utils.datetime_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class CollectionKeys:
    """Stable storage keys, one per collection."""
    PROJECTS = "projects"
    SCHEDULE_ITEMS = "schedule-items"
    MESSAGES = "messages"
    DAILY_LOGS = "daily-logs"
    THREAD_READS = "read-timestamps"
    CHANNEL_READS = "channel-read-timestamps"


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class CollectionRepository:
    """
    Base for repositories that keep their records as one JSON list.

    Subclasses set `collection_key` and work on the list returned by
    `_load()`, writing the whole list back with `_save()`. Every
    load-modify-save sequence runs under `_write_lock()`.
    """

    collection_key: str = ""

    def __init__(self, storage: Optional[StoragePort] = None, clock: Optional[Clock] = None):
        self.storage = storage or get_storage()
        self.clock = clock or utc_now

    async def _load(self) -> List[Dict[str, Any]]:
        data = await self.storage.get(self.collection_key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error(f"Collection {self.collection_key} is not a list, treating as empty")
            return []
        return data

    async def _save(self, records: List[Dict[str, Any]]) -> None:
        await self.storage.set(self.collection_key, records)

    def _write_lock(self) -> asyncio.Lock:
        return self.storage.lock(self.collection_key)

    @staticmethod
    def _index_of(records: List[Dict[str, Any]], record_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                return index
        return -1
