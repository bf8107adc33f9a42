"""
Daily log repository.

One log per (project, date). Saving is an upsert on that pair; the parsed
annotation is written separately once the parser answers.
"""

import logging
from typing import List, Optional, Union

from ..models.entities import DailyLog, ParsedLogData, WeatherCondition
from .base import CollectionKeys, CollectionRepository, generate_id

logger = logging.getLogger(__name__)


class DailyLogRepository(CollectionRepository):
    """Repository for daily logs."""

    collection_key = CollectionKeys.DAILY_LOGS

    async def get_for_project(self, project_id: str) -> List[DailyLog]:
        """All logs for a project, newest date first."""
        logs = [
            DailyLog.model_validate(record)
            for record in await self._load()
            if record.get("projectId") == project_id
        ]
        return sorted(logs, key=lambda log: log.date, reverse=True)

    async def get_by_date(self, project_id: str, date: str) -> Optional[DailyLog]:
        records = await self._load()
        index = self._find(records, project_id, date)
        if index == -1:
            return None
        return DailyLog.model_validate(records[index])

    async def upsert(
        self,
        project_id: str,
        date: str,
        raw_entry: str,
        weather: Union[WeatherCondition, str, None] = None,
        crew_count: Optional[int] = None,
        visitors: Optional[str] = None,
    ) -> DailyLog:
        """
        Save the entry for a project and date.

        Updates the existing log in place (keeping its id, creation time and
        parsed data) or inserts a new one.
        """
        async with self._write_lock():
            records = await self._load()
            index = self._find(records, project_id, date)
            now = self.clock()

            if index != -1:
                data = DailyLog.model_validate(records[index]).model_dump()
                data.update(
                    raw_entry=raw_entry,
                    weather=weather,
                    crew_count=crew_count,
                    visitors=visitors,
                    updated_at=now,
                )
                log = DailyLog.model_validate(data)
                records[index] = log.to_storage()
                logger.debug(f"Updated daily log {log.id} for {project_id} on {date}")
            else:
                log = DailyLog(
                    id=generate_id("dailylog"),
                    project_id=project_id,
                    date=date,
                    raw_entry=raw_entry,
                    weather=weather,
                    crew_count=crew_count,
                    visitors=visitors,
                    created_at=now,
                    updated_at=now,
                )
                records.append(log.to_storage())
                logger.info(f"Created daily log {log.id} for {project_id} on {date}")

            await self._save(records)
        return log

    async def update_parsed_data(
        self,
        project_id: str,
        date: str,
        parsed_data: ParsedLogData,
        fill_weather: Optional[WeatherCondition] = None,
        fill_crew_count: Optional[int] = None,
    ) -> Optional[DailyLog]:
        """
        Attach parser output. Returns None if no log exists for the date.

        `fill_weather` and `fill_crew_count` are written only where the log
        has no value of its own.
        """
        async with self._write_lock():
            records = await self._load()
            index = self._find(records, project_id, date)
            if index == -1:
                return None

            current = DailyLog.model_validate(records[index])
            update = {"parsed_data": parsed_data, "updated_at": self.clock()}
            if current.weather is None and fill_weather is not None:
                update["weather"] = fill_weather
            if current.crew_count is None and fill_crew_count is not None:
                update["crew_count"] = fill_crew_count

            log = current.model_copy(update=update)
            records[index] = log.to_storage()
            await self._save(records)
        return log

    @staticmethod
    def _find(records, project_id: str, date: str) -> int:
        for index, record in enumerate(records):
            if record.get("projectId") == project_id and record.get("date") == date:
                return index
        return -1
