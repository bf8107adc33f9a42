"""
Trade/category tag detection for message text.

Tags are derived from message content at read time and never stored.
Matching is a plain case-insensitive substring test against each tag's
keyword list, so "rained" matches "rain" and "code" matches "barcode".
"""

from dataclasses import dataclass
from typing import List, Optional, Set, Tuple


@dataclass(frozen=True)
class TagDefinition:
    """A tag and the keywords that trigger it."""
    id: str
    label: str
    icon: str
    color: str
    bg_color: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class DetectedTag:
    """A tag found in a piece of text (display metadata, no keywords)."""
    id: str
    label: str
    icon: str
    color: str
    bg_color: str

    @classmethod
    def from_definition(cls, definition: TagDefinition) -> "DetectedTag":
        return cls(
            id=definition.id,
            label=definition.label,
            icon=definition.icon,
            color=definition.color,
            bg_color=definition.bg_color,
        )


# Order matters: detect_tags returns tags in this order.
TAG_DEFINITIONS: Tuple[TagDefinition, ...] = (
    TagDefinition(
        id="concrete", label="Concrete", icon="🧱",
        color="text-amber-400", bg_color="bg-amber-400/15",
        keywords=("concrete", "pour", "foundation", "slab", "cure", "forms", "rebar"),
    ),
    TagDefinition(
        id="electrical", label="Electrical", icon="⚡",
        color="text-blue-400", bg_color="bg-blue-400/15",
        keywords=("electrical", "panel", "wire", "conduit", "circuit", "breaker", "rough-in"),
    ),
    TagDefinition(
        id="plumbing", label="Plumbing", icon="🔧",
        color="text-purple-400", bg_color="bg-purple-400/15",
        keywords=("plumbing", "pipe", "drain", "water", "sewer", "fixture"),
    ),
    TagDefinition(
        id="framing", label="Framing", icon="🪵",
        color="text-green-400", bg_color="bg-green-400/15",
        keywords=("framing", "stud", "joist", "header", "truss", "sheathing"),
    ),
    TagDefinition(
        id="roofing", label="Roofing", icon="🏠",
        color="text-red-400", bg_color="bg-red-400/15",
        keywords=("roof", "roofing", "shingle", "membrane", "flashing"),
    ),
    TagDefinition(
        id="hvac", label="HVAC", icon="❄️",
        color="text-cyan-400", bg_color="bg-cyan-400/15",
        keywords=("hvac", "duct", "ductwork", "mechanical", "heating", "cooling"),
    ),
    TagDefinition(
        id="safety", label="Safety", icon="🦺",
        color="text-rose-400", bg_color="bg-rose-400/15",
        keywords=("safety", "guardrail", "harness", "osha", "fall protection", "hazard"),
    ),
    TagDefinition(
        id="delay", label="Delay", icon="⏱️",
        color="text-red-400", bg_color="bg-red-400/15",
        keywords=("delay", "delayed", "pushed", "backorder", "hold", "waiting"),
    ),
    TagDefinition(
        id="rfi", label="RFI", icon="📋",
        color="text-blue-400", bg_color="bg-blue-400/15",
        keywords=("rfi", "submittal", "clarification", "architect"),
    ),
    TagDefinition(
        id="inspection", label="Inspection", icon="🔍",
        color="text-purple-400", bg_color="bg-purple-400/15",
        keywords=("inspection", "inspector", "passed", "failed", "code"),
    ),
    TagDefinition(
        id="schedule", label="Schedule", icon="📅",
        color="text-orange-400", bg_color="bg-orange-400/15",
        keywords=("schedule", "timeline", "deadline", "milestone"),
    ),
    TagDefinition(
        id="weather", label="Weather", icon="🌤️",
        color="text-slate-400", bg_color="bg-slate-400/15",
        keywords=("weather", "rain", "wind", "storm", "temperature"),
    ),
)

_TAGS_BY_ID = {definition.id: definition for definition in TAG_DEFINITIONS}


def detect_tags(text: Optional[str]) -> List[DetectedTag]:
    """
    Detect the tags mentioned in a piece of text.

    Args:
        text: Message text, may be empty or None

    Returns:
        Matching tags in table order, each at most once
    """
    if not text:
        return []

    lower = text.lower()
    return [
        DetectedTag.from_definition(definition)
        for definition in TAG_DEFINITIONS
        if any(keyword in lower for keyword in definition.keywords)
    ]


def detect_tag_ids(text: Optional[str]) -> Set[str]:
    """Ids of the tags detected in text."""
    return {tag.id for tag in detect_tags(text)}


def get_tag(tag_id: str) -> Optional[TagDefinition]:
    """Look up a tag definition by id."""
    return _TAGS_BY_ID.get(tag_id)
