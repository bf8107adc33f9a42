"""
Read ledger.

Per-user timestamps of when a thread or a channel was last viewed. Thread
reads and channel reads are stored under separate keys: the same message
can appear in its own thread and in several tag channels, and viewing one
surface must not mark the others read.

Layout of both documents: {user_id: {surface_key: iso_timestamp}}.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..models.threads import ThreadRef
from ..storage import StoragePort, get_storage
from ..utils.datetime_utils import Clock, to_aware_utc, utc_now
from .base import CollectionKeys

logger = logging.getLogger(__name__)


class ReadLedger:
    """Last-viewed timestamps for threads and channels."""

    def __init__(self, storage: Optional[StoragePort] = None, clock: Optional[Clock] = None):
        self.storage = storage or get_storage()
        self.clock = clock or utc_now

    # ==================== THREADS ====================

    async def get_thread_last_read(self, user_id: str, thread: ThreadRef) -> Optional[datetime]:
        return await self._get(CollectionKeys.THREAD_READS, user_id, thread.key)

    async def mark_thread_read(self, user_id: str, thread: ThreadRef) -> datetime:
        return await self._mark(CollectionKeys.THREAD_READS, user_id, thread.key)

    # ==================== CHANNELS ====================

    async def get_channel_last_read(
        self,
        user_id: str,
        project_id: str,
        channel_id: str,
    ) -> Optional[datetime]:
        return await self._get(CollectionKeys.CHANNEL_READS, user_id, f"{project_id}:{channel_id}")

    async def mark_channel_read(self, user_id: str, project_id: str, channel_id: str) -> datetime:
        return await self._mark(CollectionKeys.CHANNEL_READS, user_id, f"{project_id}:{channel_id}")

    async def get_channel_reads_for_user(self, user_id: str, project_id: str) -> Dict[str, datetime]:
        """All channel read marks a user has in one project, keyed by channel id."""
        user_marks = (await self._load(CollectionKeys.CHANNEL_READS)).get(user_id, {})
        prefix = f"{project_id}:"
        reads = {}
        for key, value in user_marks.items():
            if not key.startswith(prefix):
                continue
            read_at = self._parse_mark(user_id, key, value)
            if read_at is not None:
                reads[key[len(prefix):]] = read_at
        return reads

    # ==================== STORAGE ====================

    async def _load(self, collection: str) -> Dict[str, Dict[str, str]]:
        data = await self.storage.get(collection)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error(f"Read ledger {collection} is not a mapping, treating as empty")
            return {}
        return data

    async def _get(self, collection: str, user_id: str, surface_key: str) -> Optional[datetime]:
        value = (await self._load(collection)).get(user_id, {}).get(surface_key)
        return self._parse_mark(user_id, surface_key, value)

    @staticmethod
    def _parse_mark(user_id: str, surface_key: str, value: Any) -> Optional[datetime]:
        if not value:
            return None
        try:
            if not isinstance(value, str):
                raise ValueError("not an ISO timestamp")
            return to_aware_utc(value)
        except ValueError:
            logger.warning(f"Unreadable read mark for {user_id} {surface_key}: {value!r}")
            return None

    async def _mark(self, collection: str, user_id: str, surface_key: str) -> datetime:
        async with self.storage.lock(collection):
            now = self.clock()
            data = await self._load(collection)
            data.setdefault(user_id, {})[surface_key] = to_aware_utc(now).isoformat()
            await self.storage.set(collection, data)
        logger.debug(f"{user_id} read {surface_key} at {now.isoformat()}")
        return now
