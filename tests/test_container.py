"""
Unit Tests for Dependency Injection Container

Tests for:
- Lazy initialization and caching of adapters and the engine
- Notifier wiring order
- Shutdown
"""

from unittest.mock import AsyncMock

import pytest

from discord_playback_engine.application.services.playback_service import PlaybackEngine
from discord_playback_engine.config.container import Container, create_container
from discord_playback_engine.config.settings import AudioSettings, PlaybackSettings, Settings
from discord_playback_engine.infrastructure.audio.ffmpeg_decoder import FFmpegDecoderSpawner
from discord_playback_engine.infrastructure.audio.ytdlp_resolver import (
    YtDlpItemResolver,
    YtDlpStreamExtractor,
)

from .conftest import RecordingNotifier


@pytest.fixture
def settings():
    return Settings(
        playback=PlaybackSettings(history_limit=10, idle_teardown_seconds=0),
        audio=AudioSettings(ffmpeg_executable="/opt/ffmpeg"),
    )


@pytest.fixture
def container(settings):
    return Container(settings=settings)


class TestContainer:
    def test_adapters_are_lazy_and_cached(self, container):
        assert container._item_resolver is None

        assert isinstance(container.item_resolver, YtDlpItemResolver)
        assert container.item_resolver is container.item_resolver
        assert isinstance(container.stream_extractor, YtDlpStreamExtractor)
        assert container.stream_extractor is container.stream_extractor

        spawner = container.decoder_spawner
        assert isinstance(spawner, FFmpegDecoderSpawner)
        assert spawner.config.executable == "/opt/ffmpeg"

    def test_playback_engine_uses_settings(self, container):
        engine = container.playback_engine

        assert isinstance(engine, PlaybackEngine)
        assert engine is container.playback_engine
        assert engine.settings.history_limit == 10

    def test_notifier_must_be_set_before_engine(self, container):
        container.set_notifier(RecordingNotifier())
        container.playback_engine

        with pytest.raises(RuntimeError):
            container.set_notifier(RecordingNotifier())

    @pytest.mark.asyncio
    async def test_shutdown_closes_engine(self, container):
        engine = container.playback_engine
        engine.close = AsyncMock()

        await container.shutdown()

        engine.close.assert_awaited_once()
        assert container._playback_engine is None

    @pytest.mark.asyncio
    async def test_shutdown_contains_close_errors(self, container):
        container.playback_engine.close = AsyncMock(side_effect=RuntimeError("boom"))

        await container.shutdown()

        assert container._playback_engine is None

    @pytest.mark.asyncio
    async def test_shutdown_without_engine(self, container):
        await container.shutdown()


def test_create_container_with_explicit_settings(settings):
    assert create_container(settings).settings is settings
