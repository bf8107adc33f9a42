"""
Tag detection and channel routing.

Tags are recomputed from message text on every read; channels are a fixed
table that maps tag ids onto project-level message views.
"""

from .detector import TAG_DEFINITIONS, TagDefinition, DetectedTag, detect_tags, detect_tag_ids, get_tag
from .channels import (
    CHANNELS,
    ChannelConfig,
    ChannelType,
    get_channel_by_id,
    channel_includes,
    filter_channel_messages,
)

__all__ = [
    "TAG_DEFINITIONS",
    "TagDefinition",
    "DetectedTag",
    "detect_tags",
    "detect_tag_ids",
    "get_tag",
    "CHANNELS",
    "ChannelConfig",
    "ChannelType",
    "get_channel_by_id",
    "channel_includes",
    "filter_channel_messages",
]
