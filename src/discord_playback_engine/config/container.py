"""Dependency Injection Container

Wires the playback engine to its concrete collaborators. Components are
created lazily on first access and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.decoder import DecoderSpawner
    from ..application.interfaces.item_resolver import ItemResolver
    from ..application.interfaces.notifier import Notifier
    from ..application.interfaces.stream_extractor import StreamUrlExtractor
    from ..application.services.playback_service import PlaybackEngine
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    The notifier is optional: without one, notifications are dropped. Set it
    with ``set_notifier()`` before the engine is first accessed.
    """

    settings: Settings

    # Infrastructure adapters
    _item_resolver: ItemResolver | None = None
    _stream_extractor: StreamUrlExtractor | None = None
    _decoder_spawner: DecoderSpawner | None = None
    _notifier: Notifier | None = None

    # Application services
    _playback_engine: PlaybackEngine | None = None

    def set_notifier(self, notifier: Notifier) -> None:
        if self._playback_engine is not None:
            raise RuntimeError("Notifier must be set before the playback engine is created.")
        self._notifier = notifier

    # === Infrastructure Adapters ===

    @property
    def item_resolver(self) -> ItemResolver:
        """Get the yt-dlp item resolver."""
        if self._item_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpItemResolver

            self._item_resolver = YtDlpItemResolver(self.settings.audio)
        return self._item_resolver

    @property
    def stream_extractor(self) -> StreamUrlExtractor:
        """Get the yt-dlp direct stream URL extractor."""
        if self._stream_extractor is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpStreamExtractor

            self._stream_extractor = YtDlpStreamExtractor(self.settings.audio)
        return self._stream_extractor

    @property
    def decoder_spawner(self) -> DecoderSpawner:
        """Get the FFmpeg decoder spawner."""
        if self._decoder_spawner is None:
            from ..infrastructure.audio.ffmpeg_decoder import FFmpegDecoderSpawner

            self._decoder_spawner = FFmpegDecoderSpawner(self.settings.audio)
        return self._decoder_spawner

    # === Application Services ===

    @property
    def playback_engine(self) -> PlaybackEngine:
        """Get the playback engine."""
        if self._playback_engine is None:
            from ..application.services.playback_service import PlaybackEngine

            self._playback_engine = PlaybackEngine(
                extractor=self.stream_extractor,
                spawner=self.decoder_spawner,
                notifier=self._notifier,
                settings=self.settings.playback,
            )
        return self._playback_engine

    async def shutdown(self) -> None:
        """Tear down every session and release cached components."""
        if self._playback_engine is not None:
            try:
                await self._playback_engine.close()
            except Exception as exc:
                logger.warning("Failed closing playback engine: %r", exc)
            self._playback_engine = None


def create_container(settings: Settings | None = None) -> Container:
    """Create a new dependency injection container."""
    if settings is None:
        from .settings import get_settings

        settings = get_settings()
    return Container(settings)
