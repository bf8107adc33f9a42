"""
Project channel registry.

Channels are fixed configuration. Apart from #general, which is the
project's general thread, message channels are virtual: they aggregate
every project message whose detected tags overlap the channel's tags.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from ..models.entities import Message
from .detector import detect_tag_ids


class ChannelType(str, Enum):
    GENERAL = "general"
    TAG_FILTER = "tag-filter"
    SCHEDULE_VIEW = "schedule-view"
    NAVIGATION = "navigation"


@dataclass(frozen=True)
class ChannelConfig:
    id: str
    name: str
    description: str
    tag_ids: Tuple[str, ...]
    type: ChannelType

    @property
    def has_messages(self) -> bool:
        """Navigation channels only route elsewhere."""
        return self.type != ChannelType.NAVIGATION


CHANNELS: Tuple[ChannelConfig, ...] = (
    ChannelConfig("general", "general", "Project-wide discussion", (), ChannelType.GENERAL),
    ChannelConfig("concrete", "concrete", "Concrete, foundation & slab work", ("concrete",), ChannelType.TAG_FILTER),
    ChannelConfig("electrical", "electrical", "Electrical, panels & wiring", ("electrical",), ChannelType.TAG_FILTER),
    ChannelConfig("framing", "framing", "Framing, trusses & structural", ("framing",), ChannelType.TAG_FILTER),
    ChannelConfig("plumbing", "plumbing", "Plumbing, pipes & fixtures", ("plumbing",), ChannelType.TAG_FILTER),
    ChannelConfig("hvac", "hvac", "HVAC, ductwork & mechanical", ("hvac",), ChannelType.TAG_FILTER),
    ChannelConfig("roofing", "roofing", "Roofing & waterproofing", ("roofing",), ChannelType.TAG_FILTER),
    ChannelConfig("safety", "safety", "Safety, OSHA & fall protection", ("safety",), ChannelType.TAG_FILTER),
    ChannelConfig("rfis-submittals", "rfis-submittals", "RFIs, submittals & inspections", ("rfi", "inspection"), ChannelType.TAG_FILTER),
    ChannelConfig("schedule", "schedule", "Schedule, timeline & milestones", ("schedule",), ChannelType.SCHEDULE_VIEW),
    ChannelConfig("daily-log", "daily-log", "Daily job site logs", (), ChannelType.NAVIGATION),
)


def get_channel_by_id(channel_id: str) -> Optional[ChannelConfig]:
    """Look up a channel. Returns None for unknown ids."""
    for channel in CHANNELS:
        if channel.id == channel_id:
            return channel
    return None


def channel_includes(channel: ChannelConfig, message: Message) -> bool:
    """Whether a message shows up in a channel's unread count and feed."""
    if channel.type == ChannelType.GENERAL:
        return message.schedule_item_id is None
    if channel.type in (ChannelType.TAG_FILTER, ChannelType.SCHEDULE_VIEW):
        return not detect_tag_ids(message.content).isdisjoint(channel.tag_ids)
    return False


def filter_channel_messages(
    channel: ChannelConfig,
    messages: Iterable[Message],
) -> List[Message]:
    """Select the messages belonging to a channel, preserving order."""
    return [msg for msg in messages if channel_includes(channel, msg)]
