"""
Pydantic models for API endpoint input validation.

Request bodies use the same camelCase field names as the stored documents.
"""

from typing import List, Optional, Union
from pydantic import Field, field_validator

from .entities import JobsiteModel, ProjectStatus, Role, ScheduleItemStatus, WeatherCondition
from ..utils.datetime_utils import validate_calendar_date


# ============================================
# SCHEDULE
# ============================================

class ScheduleItemCreate(JobsiteModel):
    """Input validation for creating schedule items."""
    title: str = Field(..., min_length=1, max_length=500)
    due_date: str
    description: Optional[str] = Field(None, max_length=5000)
    assigned_to: Union[str, List[str], None] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        stripped = v.strip()
        if not stripped:
            raise ValueError("title cannot be empty after stripping whitespace")
        return stripped

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v):
        return validate_calendar_date(v)


class ScheduleItemUpdate(JobsiteModel):
    """Partial edit of a schedule item. Only fields that are sent are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    due_date: Optional[str] = None
    description: Optional[str] = Field(None, max_length=5000)
    assigned_to: Union[str, List[str], None] = None

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v):
        return v if v is None else validate_calendar_date(v)


class ScheduleStatusUpdate(JobsiteModel):
    status: ScheduleItemStatus


class ProjectStatusUpdate(JobsiteModel):
    status: ProjectStatus


# ============================================
# MESSAGES
# ============================================

class MessageCreate(JobsiteModel):
    """Input validation for posting a message."""
    author_id: str = Field(..., min_length=1, max_length=100)
    author_name: str = Field(..., min_length=1, max_length=200)
    author_role: Role
    content: str = Field(..., min_length=1, max_length=10000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError("content cannot be blank")
        return v


# ============================================
# DAILY LOGS
# ============================================

class DailyLogUpsert(JobsiteModel):
    """Input validation for saving a daily log entry."""
    raw_entry: str = Field("", max_length=50000)
    weather: Optional[WeatherCondition] = None
    crew_count: Optional[int] = Field(None, ge=0, le=10000)
    visitors: Optional[str] = Field(None, max_length=2000)


class ScheduleItemContext(JobsiteModel):
    """Schedule item as passed to the log parser for matching."""
    id: str
    title: str
    description: Optional[str] = None


class ParseLogRequest(JobsiteModel):
    """Body of POST /api/parse-log."""
    raw_entry: str = ""
    schedule_items: List[ScheduleItemContext] = Field(default_factory=list)
