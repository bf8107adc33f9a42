"""
Daily log saving, parsing and debounced autosave.

Saving always happens first and never depends on the parser. Parsing runs
afterwards as a background task and its result is merged into the stored
log when it arrives. A failed parse only flips the parse status to "error";
the raw entry is already stored.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Set, Tuple, Union

from config import settings
from ..ai.exceptions import LogParserError
from ..ai.log_parser import LogParserClient
from ..models.entities import DailyLog, WeatherCondition
from ..repositories import DailyLogRepository, ScheduleRepository
from ..storage import StorageError

logger = logging.getLogger(__name__)

LogKey = Tuple[str, str]  # (project_id, date)

MAX_TRACKED_LOGS = 500


class ParseStatus(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    DONE = "done"
    ERROR = "error"


def match_weather(condition: Optional[str]) -> Optional[WeatherCondition]:
    """Map a parsed weather condition onto the editor's options (case-insensitive)."""
    if not condition:
        return None
    for option in WeatherCondition:
        if option.value.lower() == condition.strip().lower():
            return option
    return None


@dataclass
class ParseState:
    status: ParseStatus = ParseStatus.IDLE
    last_text: Optional[str] = None


class DailyLogService:
    """Saves daily logs and annotates them with parsed data."""

    def __init__(
        self,
        daily_logs: DailyLogRepository,
        schedule: ScheduleRepository,
        parser: LogParserClient,
        max_tracked_logs: int = MAX_TRACKED_LOGS,
    ):
        self.daily_logs = daily_logs
        self.schedule = schedule
        self.parser = parser
        self.max_tracked_logs = max_tracked_logs
        self._states: "OrderedDict[LogKey, ParseState]" = OrderedDict()
        self._pending: Set[asyncio.Task] = set()

    # ==================== PARSE STATE ====================

    def get_parse_status(self, project_id: str, date: str) -> ParseStatus:
        state = self._states.get((project_id, date))
        return state.status if state else ParseStatus.IDLE

    def dismiss_parse_status(self, project_id: str, date: str) -> ParseStatus:
        """Clear a settled status. A parse still running is left alone."""
        key = (project_id, date)
        state = self._states.get(key)
        if state is not None and state.status in (ParseStatus.DONE, ParseStatus.ERROR):
            state.status = ParseStatus.IDLE
        return self.get_parse_status(project_id, date)

    def _track(self, key: LogKey, status: ParseStatus, last_text: Optional[str]) -> None:
        state = self._states.pop(key, None) or ParseState()
        state.status = status
        state.last_text = last_text
        self._states[key] = state

        # Oldest logs are forgotten first; a forgotten log is re-seeded from storage on load
        while len(self._states) > self.max_tracked_logs:
            self._states.popitem(last=False)

    def _settle(self, key: LogKey, status: ParseStatus, raw_entry: str) -> None:
        state = self._states.get(key)
        if state is not None and state.last_text != raw_entry:
            # A newer text was submitted meanwhile; its parse owns the status
            return
        self._track(key, status, raw_entry)

    def should_parse(self, project_id: str, date: str, raw_entry: str) -> bool:
        """Long enough, and different from the last text sent for this log."""
        if len(raw_entry.strip()) < self.parser.min_length:
            return False
        state = self._states.get((project_id, date))
        return state is None or raw_entry != state.last_text

    # ==================== SAVE AND PARSE ====================

    async def load_entry(self, project_id: str, date: str) -> Optional[DailyLog]:
        """
        Open a log in the editor.

        The first time a log is opened, a log that already carries parsed
        data is marked done so it is not re-parsed until its text changes.
        Later opens keep the status of the latest save, including errors.
        """
        key = (project_id, date)
        log = await self.daily_logs.get_by_date(project_id, date)

        if key in self._states:
            self._states.move_to_end(key)
        elif log is not None and log.parsed_data is not None:
            self._track(key, ParseStatus.DONE, log.raw_entry)

        return log

    async def save_entry(
        self,
        project_id: str,
        date: str,
        raw_entry: str,
        weather: Union[WeatherCondition, str, None] = None,
        crew_count: Optional[int] = None,
        visitors: Optional[str] = None,
        parse: bool = True,
    ) -> DailyLog:
        """Store the entry, then schedule parsing in the background."""
        log = await self.daily_logs.upsert(
            project_id,
            date,
            raw_entry=raw_entry,
            weather=weather,
            crew_count=crew_count,
            visitors=visitors,
        )

        if parse:
            self.request_parse(project_id, date, raw_entry)

        return log

    def request_parse(self, project_id: str, date: str, raw_entry: str) -> Optional[asyncio.Task]:
        """Start a background parse if the entry warrants one."""
        if not self.should_parse(project_id, date, raw_entry):
            return None

        # Recorded before the task runs so a quick re-save of the same text is not sent twice
        self._track((project_id, date), ParseStatus.PARSING, raw_entry)
        task = asyncio.create_task(self._run_parse(project_id, date, raw_entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def parse_entry(self, project_id: str, date: str, raw_entry: str) -> ParseStatus:
        """
        Parse an entry and merge the result into the stored log.

        Weather and crew count are filled in from the parse only when the
        user left them empty.
        """
        if not self.should_parse(project_id, date, raw_entry):
            return self.get_parse_status(project_id, date)

        self._track((project_id, date), ParseStatus.PARSING, raw_entry)
        return await self._run_parse(project_id, date, raw_entry)

    async def _run_parse(self, project_id: str, date: str, raw_entry: str) -> ParseStatus:
        key = (project_id, date)

        try:
            items = await self.schedule.get_for_project(project_id)
            parsed = await self.parser.parse(raw_entry, items)

            await self.daily_logs.update_parsed_data(
                project_id,
                date,
                parsed,
                fill_weather=match_weather(parsed.weather.condition) if parsed.weather else None,
                fill_crew_count=parsed.total_crew() or None,
            )

        except (LogParserError, StorageError) as e:
            logger.warning(f"Parsing daily log {project_id} {date} failed: {e}")
            self._settle(key, ParseStatus.ERROR, raw_entry)
            return ParseStatus.ERROR

        self._settle(key, ParseStatus.DONE, raw_entry)
        logger.info(f"Parsed daily log {project_id} {date}")
        return ParseStatus.DONE

    async def wait_for_pending(self) -> None:
        """Wait for background parses to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel background parses; their results are dropped."""
        for task in list(self._pending):
            task.cancel()
        await self.wait_for_pending()
        self._states.clear()


@dataclass
class PendingEdit:
    raw_entry: str
    weather: Union[WeatherCondition, str, None] = None
    crew_count: Optional[int] = None
    visitors: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.raw_entry.strip() and not self.weather and self.crew_count is None and not self.visitors


class DailyLogAutosaver:
    """
    Debounced autosave for the daily log editor.

    Every edit restarts the log's timer; the entry is written only once the
    editor has been quiet for the debounce period.
    """

    def __init__(self, service: DailyLogService, debounce_seconds: Optional[float] = None):
        self.service = service
        self.debounce_seconds = (
            settings.autosave_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.active_timers: Dict[LogKey, asyncio.Task] = {}
        self._edits: Dict[LogKey, PendingEdit] = {}
        self._closed = False

    def schedule(
        self,
        project_id: str,
        date: str,
        raw_entry: str,
        weather: Union[WeatherCondition, str, None] = None,
        crew_count: Optional[int] = None,
        visitors: Optional[str] = None,
    ) -> bool:
        """
        Record an edit and (re)start the save timer.

        Returns:
            False if nothing was scheduled (empty edit or autosaver closed)
        """
        if self._closed:
            return False

        edit = PendingEdit(raw_entry, weather, crew_count, visitors)
        if edit.is_empty:
            return False

        key = (project_id, date)
        self.cancel_timer(key)
        self._edits[key] = edit
        self.active_timers[key] = asyncio.create_task(self._save_after_quiet(key))
        return True

    def cancel_timer(self, key: LogKey) -> None:
        task = self.active_timers.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"Cancelled autosave timer for {key}")

    def is_pending(self, project_id: str, date: str) -> bool:
        task = self.active_timers.get((project_id, date))
        return task is not None and not task.done()

    async def flush(self, project_id: str, date: str) -> Optional[DailyLog]:
        """Save a pending edit immediately."""
        key = (project_id, date)
        if not self.is_pending(project_id, date):
            return None
        self.cancel_timer(key)
        return await self._save(key)

    async def _save_after_quiet(self, key: LogKey) -> None:
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            return

        # Past this point the save is no longer a pending timer
        self.active_timers.pop(key, None)
        try:
            await self._save(key)
        except StorageError as e:
            logger.error(f"Autosave failed for {key}: {e}", exc_info=True)

    async def _save(self, key: LogKey) -> Optional[DailyLog]:
        edit = self._edits.pop(key, None)
        if edit is None:
            return None
        project_id, date = key
        return await self.service.save_entry(
            project_id,
            date,
            raw_entry=edit.raw_entry,
            weather=edit.weather,
            crew_count=edit.crew_count,
            visitors=edit.visitors,
        )

    async def close(self) -> None:
        """Cancel every pending timer so nothing is written afterwards."""
        self._closed = True
        for key in list(self.active_timers):
            self.cancel_timer(key)
        self._edits.clear()
