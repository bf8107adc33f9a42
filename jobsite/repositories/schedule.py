"""
Schedule item repository.

Items are displayed by `order`, assigned as max(order in project) + 1.
Deleting an item leaves a gap in the ordering and leaves its thread's
messages in place.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from ..models.entities import ScheduleItem, ScheduleItemStatus
from .base import CollectionKeys, CollectionRepository, generate_id

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "due_date", "assigned_to")


class ScheduleRepository(CollectionRepository):
    """Repository for schedule item operations."""

    collection_key = CollectionKeys.SCHEDULE_ITEMS

    async def get_for_project(self, project_id: str) -> List[ScheduleItem]:
        """All items for a project in display order."""
        items = [
            ScheduleItem.model_validate(record)
            for record in await self._load()
            if record.get("projectId") == project_id
        ]
        return sorted(items, key=lambda item: item.order)

    async def get_by_id(self, item_id: str) -> Optional[ScheduleItem]:
        for record in await self._load():
            if record.get("id") == item_id:
                return ScheduleItem.model_validate(record)
        return None

    async def create(
        self,
        project_id: str,
        title: str,
        due_date: str,
        description: Optional[str] = None,
        assigned_to: Union[str, List[str], None] = None,
    ) -> ScheduleItem:
        """Create a not-started item at the end of the project's schedule."""
        async with self._write_lock():
            records = await self._load()
            orders = [r.get("order", 0) for r in records if r.get("projectId") == project_id]
            max_order = max(orders) if orders else 0

            now = self.clock()
            item = ScheduleItem(
                id=generate_id("schedule"),
                project_id=project_id,
                title=title,
                description=description,
                due_date=due_date,
                status=ScheduleItemStatus.NOT_STARTED,
                assigned_to=assigned_to,
                order=max_order + 1,
                created_at=now,
                updated_at=now,
            )

            records.append(item.to_storage())
            await self._save(records)

        logger.info(f"Created schedule item {item.id} in {project_id}: {title}")
        return item

    async def update_status(
        self,
        item_id: str,
        status: ScheduleItemStatus,
    ) -> Optional[ScheduleItem]:
        """Change an item's status. Returns None if the item does not exist."""
        return await self._apply(item_id, {"status": ScheduleItemStatus(status)})

    async def update(self, item_id: str, **updates: Any) -> Optional[ScheduleItem]:
        """
        Edit title, description, due date or assignment.

        Returns:
            Updated item, or None if the item does not exist

        Raises:
            ValueError: If a field other than the editable ones is passed
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update schedule item fields: {sorted(unknown)}")
        return await self._apply(item_id, updates)

    async def delete(self, item_id: str) -> bool:
        """Remove an item. Its messages are kept."""
        async with self._write_lock():
            records = await self._load()
            index = self._index_of(records, item_id)
            if index == -1:
                return False

            records.pop(index)
            await self._save(records)

        logger.info(f"Deleted schedule item {item_id}")
        return True

    async def _apply(self, item_id: str, updates: Dict[str, Any]) -> Optional[ScheduleItem]:
        async with self._write_lock():
            records = await self._load()
            index = self._index_of(records, item_id)
            if index == -1:
                logger.debug(f"Schedule item not found: {item_id}")
                return None

            data = ScheduleItem.model_validate(records[index]).model_dump()
            data.update(updates)
            data["updated_at"] = self.clock()
            item = ScheduleItem.model_validate(data)

            records[index] = item.to_storage()
            await self._save(records)
        return item
