"""Daily log parser: turns a free-text log entry into ParsedLogData."""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from openai import AsyncOpenAI
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from config import settings
from ..models.api_validation import ScheduleItemContext
from ..models.entities import ParsedLogData, ScheduleItem
from .exceptions import LogEntryTooShortError, LogParseError, LogParserNotConfiguredError
from .prompts import LogPromptTemplates

logger = logging.getLogger(__name__)


def strip_code_fences(content: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one anyway."""
    content = content.strip()
    if content.startswith("```"):
        content = content[3:]
        if content.startswith("json"):
            content = content[4:]
        if content.endswith("```"):
            content = content[:-3]
    return content.strip()


def to_context(item: Union[ScheduleItem, ScheduleItemContext, Dict[str, Any]]) -> Dict[str, Any]:
    """Reduce a schedule item to the id/title/description the model sees."""
    if isinstance(item, dict):
        item = ScheduleItemContext.model_validate(item)
    context = {"id": item.id, "title": item.title}
    if item.description:
        context["description"] = item.description
    return context


class LogParserClient:
    """Client for the text-to-structure model behind daily log parsing."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        min_length: Optional[int] = None,
    ):
        self.api_key = settings.llm_api_key if api_key is None else api_key
        self.base_url = base_url or settings.llm_base_url
        self.model = model or settings.llm_model
        self.min_length = settings.parse_min_length if min_length is None else min_length
        self.prompts = LogPromptTemplates()
        self._client: Optional[AsyncOpenAI] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def validate_entry(self, raw_entry: Optional[str]) -> None:
        """
        Reject entries too short to be worth parsing.

        Raises:
            LogEntryTooShortError: If the stripped entry is under the minimum length
        """
        if not raw_entry or len(raw_entry.strip()) < self.min_length:
            raise LogEntryTooShortError("Entry too short to parse")

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=10))
    async def _call_api(self, messages: List[Dict[str, str]]) -> str:
        """Make an API call to the model."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.2,
                max_tokens=settings.llm_max_tokens,
                response_format={"type": "json_object"},
            )
            return response.choices[0].message.content or ""

        except Exception as e:
            logger.error(f"Log parser API error: {e}")
            raise

    async def parse(
        self,
        raw_entry: str,
        schedule_items: Sequence[Union[ScheduleItem, ScheduleItemContext, Dict[str, Any]]] = (),
    ) -> ParsedLogData:
        """
        Extract weather, crew, deliveries, inspections, delays and completed
        work from a daily log entry.

        The model matches completed work to schedule items itself; this
        client only passes the items along as context.

        Raises:
            LogEntryTooShortError: Entry below the minimum length (no call made)
            LogParserNotConfiguredError: No API key configured
            LogParseError: Upstream failure or malformed model output
        """
        self.validate_entry(raw_entry)

        if not self.is_configured:
            raise LogParserNotConfiguredError("LLM_API_KEY not configured")

        context = [to_context(item) for item in schedule_items]
        messages = [
            {"role": "system", "content": self.prompts.SYSTEM_PROMPT},
            {"role": "user", "content": self.prompts.parse_log_prompt(raw_entry, context)},
        ]

        try:
            content = await self._call_api(messages)
        except Exception as e:
            raise LogParseError("Failed to parse log entry") from e

        if not content.strip():
            raise LogParseError("No text response from model")

        try:
            data = json.loads(strip_code_fences(content))
            return ParsedLogData.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse model output: {content[:500]}")
            raise LogParseError("Failed to parse log entry") from e


# Singleton instance
_log_parser: Optional[LogParserClient] = None


def get_log_parser() -> LogParserClient:
    """Get the log parser singleton."""
    global _log_parser
    if _log_parser is None:
        _log_parser = LogParserClient()
    return _log_parser
