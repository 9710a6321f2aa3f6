"""
Playback Bounded Context

Domain logic for queued items, per-session playback state and failure classification.
"""

from discord_playback_engine.domain.playback.entities import Item, Session, format_seconds
from discord_playback_engine.domain.playback.services import (
    PlaybackFault,
    classify_fault,
    is_valid_source_url,
)
from discord_playback_engine.domain.playback.value_objects import (
    FaultKind,
    ItemSource,
    NotificationKind,
    SeekOutcome,
    SessionSignal,
)

__all__ = [
    # Entities
    "Item",
    "Session",
    # Value Objects
    "FaultKind",
    "ItemSource",
    "NotificationKind",
    "SeekOutcome",
    "SessionSignal",
    # Services
    "PlaybackFault",
    "classify_fault",
    "format_seconds",
    "is_valid_source_url",
]
