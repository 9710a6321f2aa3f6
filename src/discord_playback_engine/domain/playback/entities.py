"""Core domain entities for the playback bounded context."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from discord_playback_engine.domain.playback.value_objects import ItemSource, SessionSignal
from discord_playback_engine.domain.shared.types import (
    DurationSeconds,
    HistoryLimit,
    ItemTitleStr,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    SessionId,
)

if TYPE_CHECKING:
    from discord_playback_engine.application.interfaces.audio_sink import AudioSink
    from discord_playback_engine.application.interfaces.decoder import DecoderHandle
    from discord_playback_engine.application.interfaces.transport import TransportConnection


def _new_item_id() -> str:
    return uuid4().hex


class Item(BaseModel):
    """One playable unit plus its resolution/retry bookkeeping.

    ``source_url`` is deliberately not validated here: an item with a broken URL
    must still be queueable so the state machine can drop it with a notification.
    """

    model_config = ConfigDict(validate_assignment=True)

    item_id: NonEmptyStr = Field(default_factory=_new_item_id)
    title: ItemTitleStr
    source_url: str
    source: ItemSource = ItemSource.URL
    is_live: bool = False
    duration_seconds: DurationSeconds | None = None
    start_offset_seconds: NonNegativeFloat = 0.0
    requested_by: NonEmptyStr | None = None

    # Prefetch state (written only by the prefetcher)
    cached_stream_url: str | None = None
    cached_at: NonNegativeFloat | None = None
    prefetch_in_flight: bool = False

    # Retry budgets, independent of each other
    resolution_attempts: NonNegativeInt = 0
    stream_abort_retries: NonNegativeInt = 0

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"
        return format_seconds(self.duration_seconds)

    @property
    def display_title(self) -> str:
        """Get display title with live marker or duration if available."""
        if self.is_live:
            return f"[LIVE] {self.title}"
        if self.duration_seconds:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title

    def clone_for_replay(self, *, start_offset_seconds: float | None = None) -> Item:
        """Return a fresh copy with new identity and reset retry/prefetch fields."""
        update: dict[str, Any] = {
            "item_id": _new_item_id(),
            "cached_stream_url": None,
            "cached_at": None,
            "prefetch_in_flight": False,
            "resolution_attempts": 0,
            "stream_abort_retries": 0,
        }
        if start_offset_seconds is not None:
            update["start_offset_seconds"] = max(0.0, float(start_offset_seconds))
        return self.model_copy(update=update)

    def clear_cached_stream(self) -> None:
        self.cached_stream_url = None
        self.cached_at = None

    def has_fresh_cache(self, now: float, ttl_seconds: float) -> bool:
        """True if a prefetched URL exists, is usable for this item and is within *ttl_seconds*."""
        if self.is_live or not self.cached_stream_url or self.cached_at is None:
            return False
        return (now - self.cached_at) < ttl_seconds


def format_seconds(value: float) -> str:
    """Format a number of seconds as M:SS or H:MM:SS."""
    seconds = max(0, int(value))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class Session(BaseModel):
    """Aggregate root holding the playback state of one owning entity (guild).

    Runtime handles (decoder process, sink, transport, idle timer) are private
    attributes: they are exclusively owned by the session and never serialized.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    DEFAULT_HISTORY_LIMIT: ClassVar[int] = 50

    session_id: SessionId
    history_limit: HistoryLimit = DEFAULT_HISTORY_LIMIT

    pending: list[Item] = Field(default_factory=list)
    now_playing: Item | None = None
    history: list[Item] = Field(default_factory=list)

    is_playing: bool = False
    is_transitioning: bool = False
    signals: set[SessionSignal] = Field(default_factory=set)

    # Timing, in monotonic milliseconds
    started_at_ms: float | None = None
    paused_at_ms: float | None = None
    accumulated_paused_ms: float = 0.0
    idle_teardown_at_ms: float | None = None

    # Incremented for every sink play-through so stale sink events can be dropped
    generation: NonNegativeInt = 0

    _decoder: DecoderHandle | None = PrivateAttr(default=None)
    _sink: AudioSink | None = PrivateAttr(default=None)
    _transport: TransportConnection | None = PrivateAttr(default=None)
    _idle_timer: Any = PrivateAttr(default=None)

    # ── Runtime handles ──────────────────────────────────────────────

    @property
    def decoder(self) -> DecoderHandle | None:
        return self._decoder

    def bind_decoder(self, handle: DecoderHandle) -> None:
        self._decoder = handle

    def release_decoder(self) -> DecoderHandle | None:
        handle, self._decoder = self._decoder, None
        return handle

    @property
    def sink(self) -> AudioSink | None:
        return self._sink

    @property
    def transport(self) -> TransportConnection | None:
        return self._transport

    def attach_output(self, transport: TransportConnection | None, sink: AudioSink) -> None:
        self._transport = transport
        self._sink = sink

    def detach_output(self) -> tuple[TransportConnection | None, AudioSink | None]:
        handles = (self._transport, self._sink)
        self._transport = None
        self._sink = None
        return handles

    @property
    def idle_timer(self) -> Any:
        return self._idle_timer

    def set_idle_timer(self, handle: Any, fires_at_ms: float | None) -> None:
        self._idle_timer = handle
        self.idle_teardown_at_ms = fires_at_ms

    # ── Queue ────────────────────────────────────────────────────────

    @property
    def queue_length(self) -> int:
        return len(self.pending)

    @property
    def is_paused(self) -> bool:
        return self.paused_at_ms is not None

    @property
    def is_idle(self) -> bool:
        """No item playing, nothing pending and no transition in flight."""
        return (
            self.now_playing is None
            and not self.pending
            and not self.is_playing
            and not self.is_transitioning
        )

    def append(self, items: list[Item]) -> None:
        self.pending.extend(items)

    def push_front(self, *items: Item) -> None:
        """Insert *items* at the head of the queue, preserving their order."""
        self.pending[0:0] = list(items)

    def pop_next(self) -> Item | None:
        if not self.pending:
            return None
        return self.pending.pop(0)

    def peek(self) -> Item | None:
        return self.pending[0] if self.pending else None

    def push_history(self, item: Item) -> None:
        """Record a finished play-through, evicting the oldest entries past the limit."""
        self.history.append(item.clone_for_replay(start_offset_seconds=0.0))
        overflow = len(self.history) - self.history_limit
        if overflow > 0:
            del self.history[:overflow]

    # ── One-shot signals ─────────────────────────────────────────────

    def raise_signal(self, *signals: SessionSignal) -> None:
        self.signals.update(signals)

    def consume(self, signal: SessionSignal) -> bool:
        """Return whether *signal* was raised, clearing it either way."""
        if signal in self.signals:
            self.signals.discard(signal)
            return True
        return False

    # ── Timing ───────────────────────────────────────────────────────

    def mark_started(self, now_ms: float) -> None:
        self.started_at_ms = now_ms
        self.paused_at_ms = None
        self.accumulated_paused_ms = 0.0

    def reset_timing(self) -> None:
        self.started_at_ms = None
        self.paused_at_ms = None
        self.accumulated_paused_ms = 0.0

    def mark_paused(self, now_ms: float) -> bool:
        if self.now_playing is None or self.is_paused:
            return False
        self.paused_at_ms = now_ms
        return True

    def mark_resumed(self, now_ms: float) -> bool:
        if self.paused_at_ms is None:
            return False
        self.accumulated_paused_ms += max(0.0, now_ms - self.paused_at_ms)
        self.paused_at_ms = None
        return True

    def elapsed_seconds(self, now_ms: float) -> float:
        """Approximate playback position of the current item, including its start offset."""
        if self.now_playing is None:
            return 0.0
        base = self.now_playing.start_offset_seconds
        if self.started_at_ms is None:
            return base
        paused_ms = self.accumulated_paused_ms
        if self.paused_at_ms is not None:
            paused_ms += max(0.0, now_ms - self.paused_at_ms)
        played_ms = max(0.0, now_ms - self.started_at_ms - paused_ms)
        return base + played_ms / 1000.0

    # ── Lifecycle ────────────────────────────────────────────────────

    def reset(self) -> None:
        """Drop queue and playback state, keeping history."""
        self.pending.clear()
        self.now_playing = None
        self.is_playing = False
        self.is_transitioning = False
        self.signals.clear()
        self.reset_timing()
