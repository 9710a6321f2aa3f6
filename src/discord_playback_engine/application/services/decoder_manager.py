"""Decoder Process Manager - exclusive owner of each session's decode process."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any

from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import SessionId

if TYPE_CHECKING:
    from ...domain.playback.entities import Session
    from ..interfaces.decoder import DecoderHandle, DecoderSpawner

logger = logging.getLogger(__name__)

ExitCallback = Callable[[SessionId, "DecoderHandle", int], Awaitable[None]]
TaskSpawner = Callable[[Coroutine[Any, Any, Any]], "asyncio.Task[Any]"]


class DecoderProcessManager:
    """Spawns and kills decode processes, at most one alive per session.

    ``stop()`` is the single teardown routine used on replace, explicit stop
    and error paths. A watcher task reports every exit through ``on_exit``;
    the callback decides whether the exiting handle is still current.
    """

    def __init__(
        self,
        spawner: DecoderSpawner,
        on_exit: ExitCallback,
        spawn_task: TaskSpawner,
    ) -> None:
        self._spawner = spawner
        self._on_exit = on_exit
        self._spawn_task = spawn_task

    async def start(
        self, session: Session, stream_url: str, start_offset_seconds: float = 0.0
    ) -> DecoderHandle:
        """Kill any previous decoder, then spawn a new one for *stream_url*.

        Raises:
            DecoderSpawnError: Propagated from the spawner.
        """
        self.stop(session)
        handle = await self._spawner.spawn(stream_url, start_offset_seconds)
        session.bind_decoder(handle)
        logger.debug(LogTemplates.DECODER_SPAWNED, handle.pid, session.session_id)
        self._spawn_task(self._watch(session.session_id, handle))
        return handle

    def stop(self, session: Session) -> bool:
        """Kill and release the session's decoder. Returns False if none was alive."""
        handle = session.release_decoder()
        if handle is None:
            return False
        try:
            handle.kill()
            logger.debug(LogTemplates.DECODER_KILLED, handle.pid, session.session_id)
        except Exception as e:
            logger.debug(LogTemplates.DECODER_KILL_ERROR, e)
        return True

    @staticmethod
    def is_current(session: Session, handle: DecoderHandle) -> bool:
        return session.decoder is handle

    async def _watch(self, session_id: SessionId, handle: DecoderHandle) -> None:
        exit_code = await handle.wait()
        logger.debug(LogTemplates.DECODER_EXITED, handle.pid, exit_code, session_id)
        await self._on_exit(session_id, handle, exit_code)
