"""
Shared Domain Kernel

Contains exceptions and constrained types shared across the engine.
"""

from discord_playback_engine.domain.shared.exceptions import (
    DecoderNonZeroExitError,
    DecoderSpawnError,
    DomainError,
    InvalidItemUrlError,
    InvalidOperationError,
    PlaybackError,
    ResolutionFailureError,
    StreamAbortError,
    TransportTimeoutError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidOperationError",
    "PlaybackError",
    "InvalidItemUrlError",
    "ResolutionFailureError",
    "DecoderSpawnError",
    "StreamAbortError",
    "DecoderNonZeroExitError",
    "TransportTimeoutError",
]
