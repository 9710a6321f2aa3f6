"""Domain services for playback: URL validation and failure classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlparse

from discord_playback_engine.domain.playback.value_objects import FaultKind
from discord_playback_engine.domain.shared.exceptions import DecoderSpawnError, StreamAbortError

# Heuristics over english-language messages. Message text is not a stable
# contract, so typed faults and exception classes are checked first.
TRANSIENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"aborted|premature close|ECONNRESET|socket hang up|EPIPE|broken pipe|connection reset",
    re.IGNORECASE,
)
FATAL_CONFIG_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"ffmpeg.*(?:not found|was not found)|no such file|not installed|executable .* not found",
    re.IGNORECASE,
)

_TRANSIENT_TYPES: Final[tuple[type[BaseException], ...]] = (
    ConnectionResetError,
    ConnectionAbortedError,
    BrokenPipeError,
    TimeoutError,
    StreamAbortError,
)
_FATAL_CONFIG_TYPES: Final[tuple[type[BaseException], ...]] = (
    FileNotFoundError,
    PermissionError,
    DecoderSpawnError,
)


@dataclass(frozen=True)
class PlaybackFault:
    """Structured failure reported by a sink or decoder adapter that already knows its kind."""

    kind: FaultKind
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


def is_valid_source_url(value: str | None) -> bool:
    """Return True if *value* is an absolute http(s) URL with a host."""
    if not value or value == "undefined":
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def classify_fault(raw: BaseException | PlaybackFault | str | None) -> FaultKind:
    """Map a raw failure signal onto the small retry taxonomy."""
    if isinstance(raw, PlaybackFault):
        return raw.kind
    if isinstance(raw, BaseException):
        if isinstance(raw, _FATAL_CONFIG_TYPES):
            return FaultKind.FATAL_CONFIG
        if isinstance(raw, _TRANSIENT_TYPES):
            return FaultKind.TRANSIENT
        message = str(raw)
    else:
        message = raw or ""

    if TRANSIENT_PATTERN.search(message):
        return FaultKind.TRANSIENT
    if FATAL_CONFIG_PATTERN.search(message):
        return FaultKind.FATAL_CONFIG
    return FaultKind.UNKNOWN
