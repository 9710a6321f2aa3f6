"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the engine is defined here once,
so models can simply annotate their fields::

    from discord_playback_engine.domain.shared.types import SessionId, NonEmptyStr

    class MyModel(BaseModel):
        session_id: SessionId
        title: NonEmptyStr
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# ── Numeric constraints ─────────────────────────────────────────────

SessionId = Annotated[int, Field(gt=0, lt=2**64)]
"""Owning-entity identifier (a Discord guild snowflake, 1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

NonNegativeFloat = Annotated[float, Field(ge=0.0)]
"""Float >= 0.0."""

VolumeFloat = Annotated[float, Field(ge=0.0, le=2.0)]
"""Audio volume multiplier in [0.0, 2.0]."""

DurationSeconds = Annotated[float, Field(ge=0.0, le=86_400.0)]
"""Item duration in seconds: 0 … 86 400 (24 hours)."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

ItemTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Item title: 1-500 characters."""


# ── Settings-specific constraints ──────────────────────────────────

HistoryLimit = Annotated[int, Field(ge=1, le=1000)]
"""History capacity: 1 … 1 000."""

RetryBudget = Annotated[int, Field(ge=0, le=10)]
"""Retry budget per item: 0 … 10."""
