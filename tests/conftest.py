"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

from jobsite.dependencies import Services
from jobsite.models.entities import ParsedLogData
from jobsite.storage import MemoryStorage


class FakeClock:
    """Controllable clock; returns the same instant until advanced."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds, minutes=minutes)
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at 2026-03-02 14:00 UTC."""
    return FakeClock(datetime(2026, 3, 2, 14, 0, tzinfo=pytz.UTC))


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return MemoryStorage(prefix="test:")


@pytest.fixture
def sample_parsed_data():
    """Parser output for a typical framing day."""
    return ParsedLogData.model_validate({
        "weather": {"condition": "Clear", "details": "Sunny, 72F"},
        "crew": [
            {"company": "ABC Framing", "count": 6, "role": "framers"},
            {"company": "Sparks Electric", "count": 2},
        ],
        "deliveries": [{"material": "Trusses", "status": "Delivered", "details": "North lot"}],
        "workCompleted": [
            {
                "description": "North wall framing",
                "location": "Building A",
                "scheduleItemId": "schedule-2",
                "scheduleItemTitle": "Framing",
            }
        ],
    })


@pytest.fixture
def mock_parser(sample_parsed_data):
    """Log parser stand-in that answers with sample_parsed_data."""
    parser = MagicMock()
    parser.min_length = 50
    parser.is_configured = True
    parser.parse = AsyncMock(return_value=sample_parsed_data)
    return parser


@pytest.fixture
def services(storage, mock_parser, clock):
    """Repositories and services over a fresh MemoryStorage."""
    return Services.build(storage, parser=mock_parser, clock=clock)


@pytest.fixture
def long_entry():
    return (
        "Clear and sunny. ABC Framing had 6 guys on the north wall, "
        "Sparks Electric 2 on rough-in. Trusses delivered to the north lot."
    )
