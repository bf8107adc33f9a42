"""Jobsite data models: projects, schedule items, messages and daily logs."""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.datetime_utils import validate_calendar_date


class Role(str, Enum):
    """Roles a team member can hold on site."""
    SUPERINTENDENT = "superintendent"
    PROJECT_MANAGER = "project_manager"
    FOREMAN = "foreman"
    SUBCONTRACTOR = "subcontractor"


class ProjectStatus(str, Enum):
    """Project lifecycle states."""
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


class ScheduleItemStatus(str, Enum):
    """Schedule item states."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    AT_RISK = "at_risk"
    BLOCKED = "blocked"


class WeatherCondition(str, Enum):
    """Weather options offered in the daily log editor."""
    CLEAR = "Clear"
    CLOUDY = "Cloudy"
    RAIN = "Rain"
    SNOW = "Snow"
    HOT = "Hot"
    COLD = "Cold"


class JobsiteModel(BaseModel):
    """
    Base model for everything persisted in a collection.

    Attributes are snake_case in Python and camelCase on the wire, so stored
    JSON reads the same as what the browser client sends.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_storage(self) -> Dict[str, Any]:
        """Serialize to the JSON-compatible dict kept in storage."""
        return self.model_dump(by_alias=True, mode="json")


# ==================== PROJECTS ====================

class Project(JobsiteModel):
    """A construction project."""
    id: str
    name: str
    address: str = ""
    contract_number: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE
    start_date: str = ""
    end_date: str = ""
    team_member_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# ==================== SCHEDULE ====================

class ScheduleItem(JobsiteModel):
    """A task on the project schedule. Each one owns a message thread."""
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    due_date: str
    status: ScheduleItemStatus = ScheduleItemStatus.NOT_STARTED
    assigned_to: List[str] = Field(default_factory=list)
    order: int
    created_at: datetime
    updated_at: datetime

    @field_validator("assigned_to", mode="before")
    @classmethod
    def normalize_assigned_to(cls, v):
        # Older records hold a single user id
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


# ==================== MESSAGES ====================

class Message(JobsiteModel):
    """A chat message. Immutable once created."""
    id: str
    project_id: str
    schedule_item_id: Optional[str] = None  # None = project's general thread
    author_id: str
    author_name: str
    author_role: Role
    content: str
    created_at: datetime


# ==================== DAILY LOGS ====================

class WeatherSummary(JobsiteModel):
    condition: str
    details: str = ""


class CrewEntry(JobsiteModel):
    company: str
    count: int = 0
    role: Optional[str] = None


class DeliveryEntry(JobsiteModel):
    material: str
    status: str = ""  # Delivered, Pending, Delayed
    details: str = ""


class InspectionEntry(JobsiteModel):
    inspector: str = ""
    area: str = ""
    result: str = ""  # Passed, Failed, Pending
    details: str = ""


class DelayEntry(JobsiteModel):
    issue: str
    impact: str = ""


class WorkCompletedEntry(JobsiteModel):
    description: str
    location: Optional[str] = None
    schedule_item_id: Optional[str] = None
    schedule_item_title: Optional[str] = None


class ParsedLogData(JobsiteModel):
    """
    Structured annotation extracted from a daily log's free text.

    Every category is optional; the parser omits categories it found
    nothing for.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    weather: Optional[WeatherSummary] = None
    crew: Optional[List[CrewEntry]] = None
    deliveries: Optional[List[DeliveryEntry]] = None
    inspections: Optional[List[InspectionEntry]] = None
    delays: Optional[List[DelayEntry]] = None
    work_completed: Optional[List[WorkCompletedEntry]] = None

    def has_insights(self) -> bool:
        """True when at least one category carries data."""
        return bool(
            self.weather
            or self.crew
            or self.deliveries
            or self.inspections
            or self.delays
            or self.work_completed
        )

    def total_crew(self) -> int:
        return sum(c.count for c in self.crew or [])

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class DailyLog(JobsiteModel):
    """One free-text log per project per date."""
    id: str
    project_id: str
    date: str
    raw_entry: str = ""
    weather: Optional[WeatherCondition] = None
    crew_count: Optional[int] = None
    visitors: Optional[str] = None
    parsed_data: Optional[ParsedLogData] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return validate_calendar_date(v)

    def to_storage(self) -> Dict[str, Any]:
        data = super().to_storage()
        if self.parsed_data is not None:
            data["parsedData"] = self.parsed_data.to_storage()
        return data
