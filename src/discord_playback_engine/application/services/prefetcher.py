"""Best-effort background resolution of the next item's direct stream URL."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.playback.services import is_valid_source_url
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.playback.entities import Session
    from ..interfaces.stream_extractor import StreamUrlExtractor

logger = logging.getLogger(__name__)


class StreamPrefetcher:
    """Warms ``pending[0].cached_stream_url`` while the current item plays.

    Failures are swallowed: synchronous resolution at play time is the fallback.
    The result is only stored if the same item (by identity) is still next in
    the queue once extraction returns.
    """

    def __init__(
        self,
        extractor: StreamUrlExtractor,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._extractor = extractor
        self._clock = clock

    async def prefetch(self, session: Session) -> bool:
        """Prefetch for the head of the queue. Returns True if a URL was stored."""
        item = session.peek()
        if item is None or item.prefetch_in_flight or item.cached_stream_url or item.is_live:
            return False
        if not is_valid_source_url(item.source_url):
            return False

        item.prefetch_in_flight = True
        logger.debug(LogTemplates.PREFETCH_STARTED, item.title)
        try:
            stream_url = await self._extractor.extract(item.source_url)
        except Exception as e:
            logger.debug(LogTemplates.PREFETCH_FAILED, item.title, e)
            return False
        finally:
            item.prefetch_in_flight = False

        head = session.peek()
        if head is None or head.item_id != item.item_id:
            logger.debug(LogTemplates.PREFETCH_STALE, item.title)
            return False

        item.cached_stream_url = stream_url
        item.cached_at = self._clock()
        logger.debug(LogTemplates.PREFETCH_STORED, item.title)
        return True
