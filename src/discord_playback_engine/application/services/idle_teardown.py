"""Idle Teardown Timer - disconnects sessions whose queue stayed empty."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ...domain.shared.messages import LogTemplates
from .decoder_manager import TaskSpawner

if TYPE_CHECKING:
    from ...domain.playback.entities import Session

logger = logging.getLogger(__name__)

TeardownCallback = Callable[["Session"], Awaitable[None]]


class IdleTeardownTimer:
    """Arms one ``loop.call_later`` timer per session.

    When the timer fires, the session is re-checked for idleness before
    ``on_teardown`` runs, so activity that resumed after scheduling wins.
    """

    def __init__(
        self,
        grace_seconds: float,
        on_teardown: TeardownCallback,
        spawn_task: TaskSpawner,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._grace_seconds = grace_seconds
        self._on_teardown = on_teardown
        self._spawn_task = spawn_task
        self._clock = clock

    @property
    def grace_seconds(self) -> float:
        return self._grace_seconds

    async def schedule(self, session: Session) -> None:
        """Cancel any pending timer and arm a new one (or tear down now if grace is 0)."""
        self.cancel(session)
        if self._grace_seconds <= 0:
            await self._fire(session)
            return

        loop = asyncio.get_running_loop()
        handle = loop.call_later(
            self._grace_seconds,
            lambda: self._spawn_task(self._fire(session)),
        )
        session.set_idle_timer(handle, (self._clock() + self._grace_seconds) * 1000.0)
        logger.info(LogTemplates.IDLE_SCHEDULED, session.session_id, self._grace_seconds)

    def cancel(self, session: Session) -> bool:
        handle = session.idle_timer
        if handle is None:
            return False
        handle.cancel()
        session.set_idle_timer(None, None)
        logger.debug(LogTemplates.IDLE_CANCELLED, session.session_id)
        return True

    async def _fire(self, session: Session) -> None:
        session.set_idle_timer(None, None)
        if not session.is_idle:
            logger.debug(LogTemplates.IDLE_FIRED_BUSY, session.session_id)
            return
        logger.info(LogTemplates.IDLE_TEARDOWN, session.session_id)
        await self._on_teardown(session)
