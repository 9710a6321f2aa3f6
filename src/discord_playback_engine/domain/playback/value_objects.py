"""Value objects and enumerations for the playback bounded context."""

from __future__ import annotations

from enum import Enum


class ItemSource(Enum):
    """Provider an item was resolved from."""

    YOUTUBE = "youtube"
    TWITCH = "twitch"
    SPOTIFY = "spotify"
    URL = "url"

    @classmethod
    def from_extractor(cls, extractor_key: str | None) -> ItemSource:
        """Map a yt-dlp extractor key to a source label."""
        key = (extractor_key or "").lower()
        if "twitch" in key:
            return cls.TWITCH
        if "youtube" in key:
            return cls.YOUTUBE
        return cls.URL


class SessionSignal(Enum):
    """One-shot signals passed between operations on the same session.

    A signal is raised by one operation and consumed (cleared) by the first
    piece of logic that reads it.

    - KEEP_CONNECTION_ON_EMPTY: the next drain-to-empty must not arm idle teardown.
    - SUPPRESS_NEXT_HISTORY_PUSH: the interrupted play-through must not enter history.
    - IGNORE_NEXT_ABORT_ERROR: the next sink error was caused by a deliberate stop.
    """

    KEEP_CONNECTION_ON_EMPTY = "keep_connection_on_empty"
    SUPPRESS_NEXT_HISTORY_PUSH = "suppress_next_history_push"
    IGNORE_NEXT_ABORT_ERROR = "ignore_next_abort_error"


class FaultKind(Enum):
    """Classification of a raw playback failure."""

    TRANSIENT = "transient"
    FATAL_CONFIG = "fatal_config"
    UNKNOWN = "unknown"

    @property
    def is_retryable(self) -> bool:
        return self is not FaultKind.FATAL_CONFIG


class NotificationKind(Enum):
    """Kinds of best-effort status notifications emitted by the engine."""

    NOW_PLAYING = "now_playing"
    INVALID_URL = "invalid_url"
    STREAM_RETRY = "stream_retry"
    PLAYBACK_FAILED = "playback_failed"
    DECODER_MISCONFIGURED = "decoder_misconfigured"
    QUEUE_FINISHED = "queue_finished"
    IDLE_DISCONNECT = "idle_disconnect"


class SeekOutcome(Enum):
    """What a seek request ended up doing."""

    SEEKED = "seeked"
    SKIPPED = "skipped"
