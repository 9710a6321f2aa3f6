"""DTOs for the playback application service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ...domain.playback.entities import Item
from ...domain.playback.value_objects import NotificationKind, SeekOutcome
from ...domain.shared.types import NonNegativeFloat, NonNegativeInt, SessionId


class Notification(BaseModel):
    """A best-effort status message addressed to the session's text channel."""

    model_config = ConfigDict(frozen=True)

    session_id: SessionId
    kind: NotificationKind
    message: str
    item: Item | None = None
    pending_count: NonNegativeInt = 0


class EnqueueResult(BaseModel):
    added: NonNegativeInt
    queue_length: NonNegativeInt
    started: bool = False


class SeekResult(BaseModel):
    outcome: SeekOutcome
    target_seconds: NonNegativeFloat


class QueueSnapshot(BaseModel):
    """Read-only view of a session for display purposes."""

    session_id: SessionId
    now_playing: Item | None
    pending: list[Item]
    history: list[Item]
    elapsed_seconds: NonNegativeFloat
    is_playing: bool
    is_paused: bool

    @property
    def total_length(self) -> int:
        return len(self.pending) + (1 if self.now_playing else 0)

    @property
    def total_duration_seconds(self) -> float | None:
        """Sum of known durations of pending items, or None if any is unknown."""
        total = 0.0
        for item in self.pending:
            if item.duration_seconds is None or item.is_live:
                return None
            total += item.duration_seconds
        return total
