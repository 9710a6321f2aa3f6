"""Playback Application Service - the per-session queue state machine.

Every mutation of a Session happens on the event loop, inside one of the
coroutines below. ``is_transitioning`` and ``is_playing`` act as a cooperative,
non-blocking mutex: at most one ``advance()`` runs per session at a time, and a
second call while one is in flight is a no-op.

The only cancellation primitive is killing the current decoder. Skip, seek,
previous and stop all end the current play-through that way. Those controls
advance inline, so a following control already sees the new item.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, Any

from ...config.settings import PlaybackSettings
from ...domain.playback.entities import Item, Session
from ...domain.playback.services import PlaybackFault, classify_fault, is_valid_source_url
from ...domain.playback.value_objects import (
    FaultKind,
    NotificationKind,
    SeekOutcome,
    SessionSignal,
)
from ...domain.shared.exceptions import (
    DecoderNonZeroExitError,
    InvalidItemUrlError,
    InvalidOperationError,
    TransportTimeoutError,
    ValidationError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates, NotificationMessages
from ...domain.shared.types import SessionId
from .decoder_manager import DecoderProcessManager
from .idle_teardown import IdleTeardownTimer
from .playback_models import EnqueueResult, Notification, QueueSnapshot, SeekResult
from .prefetcher import StreamPrefetcher
from .session_registry import SessionRegistry

if TYPE_CHECKING:
    from ..interfaces.audio_sink import AudioSink, SinkEndCallback
    from ..interfaces.decoder import DecoderHandle, DecoderSpawner
    from ..interfaces.notifier import Notifier
    from ..interfaces.stream_extractor import StreamUrlExtractor
    from ..interfaces.transport import TransportConnection

logger = logging.getLogger(__name__)


class PlaybackEngine:
    """Orchestrates queue, decoder, sink, prefetch and idle teardown for many sessions."""

    def __init__(
        self,
        *,
        extractor: StreamUrlExtractor,
        spawner: DecoderSpawner,
        notifier: Notifier | None = None,
        settings: PlaybackSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or PlaybackSettings()
        self._extractor = extractor
        self._notifier = notifier
        self._clock = clock

        self._registry = SessionRegistry(history_limit=self._settings.history_limit)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._watchers: set[asyncio.Task[Any]] = set()

        self._prefetcher = StreamPrefetcher(extractor, clock=clock)
        self._decoders = DecoderProcessManager(
            spawner,
            on_exit=self._dispatch_decoder_exit,
            spawn_task=self._spawn_watcher,
        )
        self._idle = IdleTeardownTimer(
            self._settings.idle_teardown_seconds,
            on_teardown=self._on_idle_teardown,
            spawn_task=self._spawn_task,
            clock=clock,
        )

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def settings(self) -> PlaybackSettings:
        return self._settings

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    # ── Connection ───────────────────────────────────────────────────

    async def join(
        self, session_id: SessionId, transport: TransportConnection, sink: AudioSink
    ) -> Session:
        """Wait for *transport* to become ready, then bind *sink* to the session.

        Raises:
            TransportTimeoutError: If the transport is not ready in time.
        """
        timeout = self._settings.transport_ready_timeout_seconds
        try:
            await transport.wait_ready(timeout)
        except TimeoutError as e:
            logger.error(LogTemplates.TRANSPORT_TIMEOUT, session_id, timeout)
            try:
                await transport.disconnect()
            except Exception:
                logger.debug(LogTemplates.TRANSPORT_DISCONNECT_ERROR, session_id)
            raise TransportTimeoutError(timeout) from e

        session = self._registry.get_or_create(session_id)
        session.attach_output(transport, sink)
        transport.set_on_disconnected(lambda: self.on_transport_disconnected(session_id))
        logger.info(LogTemplates.TRANSPORT_READY, session_id)

        if session.pending and not session.is_playing and not session.is_transitioning:
            await self.advance(session_id)
        return session

    async def on_transport_disconnected(self, session_id: SessionId) -> None:
        session = self._registry.get(session_id)
        if session is None:
            return
        logger.info(LogTemplates.TRANSPORT_DISCONNECTED, session_id)
        await self._teardown(session)

    # ── Queue operations ─────────────────────────────────────────────

    async def enqueue(self, session_id: SessionId, items: Iterable[Item]) -> EnqueueResult:
        """Append *items*; start playback if the session is idle. Never raises on playback failure."""
        new_items = list(items)
        session = self._registry.get_or_create(session_id)
        session.append(new_items)
        if new_items:
            self._idle.cancel(session)
        logger.info(LogTemplates.QUEUE_ENQUEUED, len(new_items), session_id, session.queue_length)

        started = False
        if not session.is_playing and not session.is_transitioning:
            started = await self.advance(session_id)
        else:
            self._schedule_prefetch(session)
        return EnqueueResult(
            added=len(new_items), queue_length=session.queue_length, started=started
        )

    async def enqueue_next(self, session_id: SessionId, items: Iterable[Item]) -> EnqueueResult:
        """Insert *items* at the front of the queue so they play right after the current item."""
        new_items = list(items)
        session = self._registry.get_or_create(session_id)
        session.push_front(*new_items)
        if new_items:
            self._idle.cancel(session)
        logger.info(LogTemplates.QUEUE_ENQUEUED_NEXT, len(new_items), session_id)

        started = False
        if not session.is_playing and not session.is_transitioning:
            started = await self.advance(session_id)
        else:
            self._schedule_prefetch(session)
        return EnqueueResult(
            added=len(new_items), queue_length=session.queue_length, started=started
        )

    async def move(self, session_id: SessionId, from_pos: int, to_pos: int) -> Item:
        """Move a pending item between 1-based positions."""
        session = self._require_session(session_id, "move")
        self._check_position(session, from_pos)
        self._check_position(session, to_pos)
        item = session.pending.pop(from_pos - 1)
        session.pending.insert(to_pos - 1, item)
        logger.info(LogTemplates.QUEUE_MOVED, from_pos, to_pos, session_id)
        if session.is_playing:
            self._schedule_prefetch(session)
        return item

    async def remove(self, session_id: SessionId, position: int) -> Item:
        """Remove the pending item at 1-based *position*."""
        session = self._require_session(session_id, "remove")
        self._check_position(session, position)
        item = session.pending.pop(position - 1)
        logger.info(LogTemplates.QUEUE_REMOVED, item.title, session_id)
        if session.is_playing:
            self._schedule_prefetch(session)
        return item

    async def clear(self, session_id: SessionId) -> int:
        """Drop all pending items. The current item keeps playing."""
        session = self._registry.get(session_id)
        if session is None:
            return 0
        count = len(session.pending)
        session.pending.clear()
        logger.info(LogTemplates.QUEUE_CLEARED, count, session_id)
        return count

    def snapshot(self, session_id: SessionId) -> QueueSnapshot | None:
        session = self._registry.get(session_id)
        if session is None:
            return None
        return QueueSnapshot(
            session_id=session_id,
            now_playing=session.now_playing,
            pending=list(session.pending),
            history=list(session.history),
            elapsed_seconds=session.elapsed_seconds(self._now_ms()),
            is_playing=session.is_playing,
            is_paused=session.is_paused,
        )

    # ── Core transition ──────────────────────────────────────────────

    async def advance(self, session_id: SessionId) -> bool:
        """Move the session to its next playable item.

        Returns True if an item started playing. A no-op while another advance
        is in flight or an item is already playing.
        """
        session = self._registry.get(session_id)
        if session is None:
            return False
        if session.is_transitioning or session.is_playing:
            logger.debug(
                LogTemplates.ADVANCE_IGNORED,
                session_id,
                session.is_playing,
                session.is_transitioning,
            )
            return False
        if session.sink is None:
            logger.debug(LogTemplates.ADVANCE_NO_SINK, session_id)
            return False

        session.is_transitioning = True
        try:
            return await self._advance(session)
        finally:
            session.is_transitioning = False

    async def _advance(self, session: Session) -> bool:
        suppress_history = session.consume(SessionSignal.SUPPRESS_NEXT_HISTORY_PUSH)
        if session.now_playing is not None:
            if not suppress_history:
                session.push_history(session.now_playing)
            session.now_playing = None
        keep_connection = session.consume(SessionSignal.KEEP_CONNECTION_ON_EMPTY)

        while True:
            item = session.pop_next()
            if item is None:
                await self._on_drained(session, keep_connection=keep_connection)
                return False

            if not is_valid_source_url(item.source_url):
                logger.warning(
                    LogTemplates.ADVANCE_INVALID_URL,
                    item.title,
                    session.session_id,
                    InvalidItemUrlError(item.source_url),
                )
                self._notify(
                    session,
                    NotificationKind.INVALID_URL,
                    NotificationMessages.INVALID_URL.format(title=item.title),
                    item,
                )
                continue

            item.resolution_attempts += 1
            try:
                started = await self._start_item(session, item)
            except Exception as e:
                await self._on_start_failure(session, item, e)
                if not self._is_bound(session):
                    return False
                continue

            if not started:
                return False

            session.is_playing = True
            session.is_transitioning = False
            session.mark_started(self._now_ms())
            session.now_playing = item
            session.consume(SessionSignal.IGNORE_NEXT_ABORT_ERROR)
            logger.info(
                LogTemplates.PLAYBACK_STARTED,
                item.title,
                session.session_id,
                item.start_offset_seconds,
            )
            self._notify(
                session,
                NotificationKind.NOW_PLAYING,
                NotificationMessages.NOW_PLAYING.format(title=item.title),
                item,
            )
            self._schedule_prefetch(session)
            return True

    async def _start_item(self, session: Session, item: Item) -> bool:
        """Resolve, spawn and wire one item. Returns False if the session went away meanwhile."""
        cached = item.cached_stream_url
        if cached is not None and item.has_fresh_cache(
            self._clock(), self._settings.prefetch_ttl_seconds
        ):
            logger.debug(LogTemplates.ADVANCE_USING_PREFETCH, item.title)
            stream_url = cached
        else:
            if cached and not item.is_live:
                logger.debug(LogTemplates.ADVANCE_CACHE_EXPIRED, item.title)
            stream_url = await self._extractor.extract(item.source_url)

        if not self._is_bound(session):
            return False

        handle = await self._decoders.start(session, stream_url, item.start_offset_seconds)

        sink = session.sink
        if not self._is_bound(session) or sink is None:
            self._decoders.stop(session)
            return False

        session.generation += 1
        try:
            sink.play(handle.stdout, self._make_sink_callback(session.session_id, session.generation))
        except Exception as e:
            logger.error(LogTemplates.PLAYBACK_SINK_PLAY_FAILED, session.session_id, e)
            self._decoders.stop(session)
            raise
        return True

    async def _on_start_failure(self, session: Session, item: Item, error: Exception) -> None:
        self._decoders.stop(session)
        kind = classify_fault(error)
        limit = self._settings.max_resolution_attempts

        if item.resolution_attempts <= limit:
            logger.warning(
                LogTemplates.ADVANCE_RESOLVE_RETRY,
                item.title,
                session.session_id,
                item.resolution_attempts,
                limit,
                error,
            )
            item.clear_cached_stream()
            session.push_front(item)
            backoff = self._settings.resolution_retry_backoff_seconds
            if backoff > 0:
                await asyncio.sleep(backoff)
            return

        logger.error(
            LogTemplates.ADVANCE_RESOLVE_ABANDONED,
            item.title,
            session.session_id,
            item.resolution_attempts,
        )
        if kind is FaultKind.FATAL_CONFIG:
            hint = getattr(error, "hint", None) or ErrorMessages.DECODER_HINT
            self._notify(
                session,
                NotificationKind.DECODER_MISCONFIGURED,
                NotificationMessages.DECODER_MISCONFIGURED.format(title=item.title, hint=hint),
                item,
            )
        else:
            self._notify(
                session,
                NotificationKind.PLAYBACK_FAILED,
                NotificationMessages.PLAYBACK_FAILED.format(title=item.title),
                item,
            )

    async def _on_drained(self, session: Session, *, keep_connection: bool) -> None:
        self._decoders.stop(session)
        session.now_playing = None
        session.is_playing = False
        session.is_transitioning = False
        session.reset_timing()
        logger.info(LogTemplates.QUEUE_EMPTY, session.session_id)
        if keep_connection:
            return

        grace = self._idle.grace_seconds
        message = (
            NotificationMessages.QUEUE_FINISHED_LEAVING.format(seconds=int(grace))
            if grace > 0
            else NotificationMessages.QUEUE_FINISHED
        )
        self._notify(session, NotificationKind.QUEUE_FINISHED, message)
        await self._idle.schedule(session)

    # ── Sink and decoder events ──────────────────────────────────────

    async def on_sink_idle(self, session_id: SessionId) -> None:
        """The current item finished naturally (or was force-stopped)."""
        session = self._registry.get(session_id)
        if session is None:
            return
        if session.now_playing is not None:
            logger.info(LogTemplates.PLAYBACK_FINISHED, session.now_playing.title, session_id)
        session.is_playing = False
        self._decoders.stop(session)
        session.reset_timing()
        await self.advance(session_id)

    async def on_sink_error(
        self, session_id: SessionId, error: BaseException | PlaybackFault | str
    ) -> None:
        """The sink failed mid-stream; retry transient faults within the item's budget."""
        session = self._registry.get(session_id)
        if session is None:
            return
        self._decoders.stop(session)
        session.reset_timing()

        kind = classify_fault(error)
        ignored = session.consume(SessionSignal.IGNORE_NEXT_ABORT_ERROR)
        logger.warning(LogTemplates.PLAYBACK_SINK_ERROR, session_id, kind.value, error)
        if kind is FaultKind.UNKNOWN:
            logger.warning(LogTemplates.PLAYBACK_UNKNOWN_FAULT, session_id, error)

        item = session.now_playing
        if item is not None and not ignored:
            self._apply_stream_fault(session, item, kind)

        session.now_playing = None
        session.is_playing = False
        await self.advance(session_id)

    async def on_decoder_exit(
        self, session_id: SessionId, handle: DecoderHandle, exit_code: int
    ) -> None:
        """A decoder exited. Only a non-zero exit of the current decoder while playing matters."""
        session = self._registry.get(session_id)
        if session is None:
            return
        if not self._decoders.is_current(session, handle):
            logger.debug(LogTemplates.DECODER_STALE_EXIT, handle.pid, session_id)
            return
        if not session.is_playing or exit_code == 0:
            return

        fault = DecoderNonZeroExitError(exit_code)
        item = session.now_playing
        self._decoders.stop(session)
        if item is not None:
            self._apply_stream_fault(session, item, classify_fault(fault))

        session.now_playing = None
        session.is_playing = False
        session.reset_timing()
        sink = session.sink
        if sink is not None and sink.is_active():
            sink.stop()
        else:
            await self.advance(session_id)

    def _apply_stream_fault(self, session: Session, item: Item, kind: FaultKind) -> None:
        """Requeue *item* at the front if the fault is retryable and its budget allows."""
        limit = self._settings.max_stream_abort_retries
        if kind.is_retryable:
            item.stream_abort_retries += 1
            if item.stream_abort_retries <= limit:
                item.clear_cached_stream()
                session.push_front(item)
                logger.warning(
                    LogTemplates.PLAYBACK_STREAM_RETRY,
                    item.title,
                    session.session_id,
                    item.stream_abort_retries,
                    limit,
                )
                self._notify(
                    session,
                    NotificationKind.STREAM_RETRY,
                    NotificationMessages.STREAM_RETRY.format(
                        title=item.title, attempt=item.stream_abort_retries, maximum=limit
                    ),
                    item,
                )
                return
            logger.error(
                LogTemplates.PLAYBACK_STREAM_ABANDONED,
                item.title,
                session.session_id,
                item.stream_abort_retries,
            )
            self._notify(
                session,
                NotificationKind.PLAYBACK_FAILED,
                NotificationMessages.PLAYBACK_FAILED.format(title=item.title),
                item,
            )
            return

        self._notify(
            session,
            NotificationKind.DECODER_MISCONFIGURED,
            NotificationMessages.DECODER_MISCONFIGURED.format(
                title=item.title, hint=ErrorMessages.DECODER_HINT
            ),
            item,
        )

    # ── User controls ────────────────────────────────────────────────

    async def skip(self, session_id: SessionId) -> Item | None:
        """End the current item and move on. Returns the skipped item."""
        session = self._registry.get(session_id)
        if session is None or session.now_playing is None:
            return None
        skipped = session.now_playing
        self._idle.cancel(session)
        await self._force_stop(session)
        logger.info(LogTemplates.PLAYBACK_SKIPPED, skipped.title, session_id)
        return skipped

    async def skip_to(self, session_id: SessionId, position: int) -> Item:
        """Drop every pending item before 1-based *position* and play that one next."""
        session = self._require_session(session_id, "skip_to")
        self._check_position(session, position)
        del session.pending[: position - 1]
        target = session.pending[0]
        logger.info(LogTemplates.QUEUE_SKIPPED_TO, position - 1, position, session_id)
        self._idle.cancel(session)
        if session.now_playing is not None:
            await self._force_stop(session)
        else:
            await self.advance(session_id)
        return target

    async def seek(self, session_id: SessionId, delta_seconds: float) -> SeekResult:
        """Jump *delta_seconds* relative to the current position by restarting the decoder.

        Raises:
            InvalidOperationError: If nothing is playing or the item is live.
            ValidationError: If *delta_seconds* is zero or not finite.
        """
        session = self._registry.get(session_id)
        if session is None or session.now_playing is None:
            raise InvalidOperationError("seek", "idle", ErrorMessages.NOTHING_PLAYING)
        item = session.now_playing
        if item.is_live:
            raise InvalidOperationError("seek", "live", ErrorMessages.CANNOT_SEEK_LIVE)
        if not math.isfinite(delta_seconds) or delta_seconds == 0:
            raise ValidationError(ErrorMessages.INVALID_SEEK_DELTA, field="delta_seconds")

        target = max(0.0, session.elapsed_seconds(self._now_ms()) + delta_seconds)
        self._idle.cancel(session)

        duration = item.duration_seconds
        if duration and target >= duration:
            logger.info(LogTemplates.PLAYBACK_SEEK_PAST_END, target, item.title)
            await self._force_stop(session)
            return SeekResult(outcome=SeekOutcome.SKIPPED, target_seconds=target)

        logger.info(LogTemplates.PLAYBACK_SEEK, item.title, target, session_id)
        session.push_front(item.clone_for_replay(start_offset_seconds=target))
        session.raise_signal(SessionSignal.SUPPRESS_NEXT_HISTORY_PUSH)
        await self._force_stop(session)
        return SeekResult(outcome=SeekOutcome.SEEKED, target_seconds=target)

    async def previous(self, session_id: SessionId) -> Item:
        """Replay the most recent history entry, then resume the interrupted item.

        Raises:
            InvalidOperationError: If history is empty.
        """
        session = self._registry.get(session_id)
        if session is None or not session.history:
            raise InvalidOperationError("previous", "empty history", ErrorMessages.HISTORY_EMPTY)

        restored = session.history.pop().clone_for_replay()
        if session.now_playing is not None:
            session.push_front(session.now_playing.clone_for_replay())
        session.push_front(restored)
        self._idle.cancel(session)
        logger.info(LogTemplates.PLAYBACK_PREVIOUS, restored.title, session_id)

        if session.now_playing is not None or session.is_playing:
            session.raise_signal(SessionSignal.SUPPRESS_NEXT_HISTORY_PUSH)
            await self._force_stop(session)
        else:
            await self.advance(session_id)
        return restored

    async def pause(self, session_id: SessionId) -> bool:
        session = self._registry.get(session_id)
        if session is None or not session.mark_paused(self._now_ms()):
            return False
        if session.sink is not None:
            session.sink.pause()
        logger.info(LogTemplates.PLAYBACK_PAUSED, session_id)
        return True

    async def resume(self, session_id: SessionId) -> bool:
        session = self._registry.get(session_id)
        if session is None or not session.mark_resumed(self._now_ms()):
            return False
        self._idle.cancel(session)
        if session.sink is not None:
            session.sink.resume()
        logger.info(LogTemplates.PLAYBACK_RESUMED, session_id)
        return True

    async def stop(self, session_id: SessionId) -> bool:
        """Clear everything, kill the decoder and disconnect. The session is dropped."""
        session = self._registry.get(session_id)
        if session is None:
            return False
        await self._teardown(session)
        logger.info(LogTemplates.PLAYBACK_STOPPED, session_id)
        return True

    async def _force_stop(self, session: Session) -> None:
        """End the current play-through and advance before returning.

        The sink's end event for the interrupted play-through is stale once this
        returns; the next item (or the drain) has already been applied.
        """
        session.raise_signal(
            SessionSignal.KEEP_CONNECTION_ON_EMPTY, SessionSignal.IGNORE_NEXT_ABORT_ERROR
        )
        self._decoders.stop(session)
        session.generation += 1
        sink = session.sink
        if sink is not None and sink.is_active():
            sink.stop()
        session.is_playing = False
        session.reset_timing()
        await self.advance(session.session_id)

    # ── Teardown ─────────────────────────────────────────────────────

    async def _on_idle_teardown(self, session: Session) -> None:
        self._notify(session, NotificationKind.IDLE_DISCONNECT, NotificationMessages.IDLE_DISCONNECT)
        await self._teardown(session)

    async def _teardown(self, session: Session) -> None:
        self._idle.cancel(session)
        session.generation += 1
        session.reset()
        self._decoders.stop(session)

        transport, sink = session.detach_output()
        if sink is not None:
            try:
                sink.stop()
            except Exception as e:
                logger.debug(LogTemplates.VOICE_CLIENT_ERROR, e)
        if transport is not None:
            try:
                await transport.disconnect()
            except Exception:
                logger.exception(LogTemplates.TRANSPORT_DISCONNECT_ERROR, session.session_id)

        if self._registry.get(session.session_id) is session:
            self._registry.remove(session.session_id)

    async def close(self) -> None:
        """Tear down every session and cancel background work."""
        sessions = list(self._registry)
        for session in sessions:
            await self._teardown(session)

        tasks = [*self._tasks, *self._watchers]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(LogTemplates.ENGINE_CLOSED, len(sessions))

    async def settle(self) -> None:
        """Wait until queued event dispatches, prefetches and notifications have run."""
        quiet_rounds = 0
        while quiet_rounds < 3:
            pending = [task for task in self._tasks if not task.done()]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                quiet_rounds = 0
            else:
                await asyncio.sleep(0)
                quiet_rounds += 1

    # ── Internals ────────────────────────────────────────────────────

    def _require_session(self, session_id: SessionId, operation: str) -> Session:
        session = self._registry.get(session_id)
        if session is None:
            raise InvalidOperationError(operation, "no session")
        return session

    @staticmethod
    def _check_position(session: Session, position: int) -> None:
        maximum = len(session.pending)
        if not 1 <= position <= maximum:
            raise ValidationError(
                ErrorMessages.INVALID_QUEUE_POSITION.format(position=position, maximum=maximum),
                field="position",
            )

    def _is_bound(self, session: Session) -> bool:
        """True while the session is still registered and has a sink attached."""
        return self._registry.get(session.session_id) is session and session.sink is not None

    def _spawn_task(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _spawn_watcher(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._watchers.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        self._watchers.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(LogTemplates.ENGINE_TASK_FAILED, exc_info=exc)

    def _schedule_prefetch(self, session: Session) -> None:
        if session.pending:
            self._spawn_task(self._prefetcher.prefetch(session))

    def _notify(
        self,
        session: Session,
        kind: NotificationKind,
        message: str,
        item: Item | None = None,
    ) -> None:
        notifier = self._notifier
        if notifier is None:
            return
        notification = Notification(
            session_id=session.session_id,
            kind=kind,
            message=message,
            item=item,
            pending_count=len(session.pending),
        )
        self._spawn_task(self._deliver(notifier, notification))

    async def _deliver(self, notifier: Notifier, notification: Notification) -> None:
        try:
            await notifier.notify(notification)
        except Exception as e:
            logger.debug(
                LogTemplates.NOTIFY_FAILED, notification.kind.value, notification.session_id, e
            )

    def _make_sink_callback(self, session_id: SessionId, generation: int) -> SinkEndCallback:
        loop = asyncio.get_running_loop()

        def on_end(error: BaseException | None) -> None:
            try:
                loop.call_soon_threadsafe(self._dispatch_sink_end, session_id, generation, error)
            except RuntimeError:
                # Loop already closed during shutdown.
                logger.debug(LogTemplates.PLAYBACK_STALE_EVENT, session_id, generation, -1)

        return on_end

    def _dispatch_sink_end(
        self, session_id: SessionId, generation: int, error: BaseException | None
    ) -> None:
        self._spawn_task(self._handle_sink_end(session_id, generation, error))

    async def _handle_sink_end(
        self, session_id: SessionId, generation: int, error: BaseException | None
    ) -> None:
        session = self._registry.get(session_id)
        if session is None:
            return
        if generation != session.generation:
            logger.debug(LogTemplates.PLAYBACK_STALE_EVENT, session_id, generation, session.generation)
            return
        if error is None:
            await self.on_sink_idle(session_id)
        else:
            await self.on_sink_error(session_id, error)

    async def _dispatch_decoder_exit(
        self, session_id: SessionId, handle: DecoderHandle, exit_code: int
    ) -> None:
        self._spawn_task(self.on_decoder_exit(session_id, handle, exit_code))
