"""Tests for DecoderProcessManager."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from discord_playback_engine.application.services.decoder_manager import DecoderProcessManager
from discord_playback_engine.domain.playback.entities import Session
from discord_playback_engine.domain.shared.exceptions import DecoderSpawnError


@pytest.fixture
def session():
    return Session(session_id=7)


@pytest.fixture
def on_exit():
    return AsyncMock()


@pytest.fixture
def manager(spawner, on_exit):
    return DecoderProcessManager(spawner, on_exit=on_exit, spawn_task=asyncio.ensure_future)


class TestDecoderProcessManager:
    @pytest.mark.asyncio
    async def test_start_binds_handle(self, manager, session, spawner):
        handle = await manager.start(session, "https://media.example/1/audio", 12.5)

        assert session.decoder is handle
        assert handle.stream_url == "https://media.example/1/audio"
        assert handle.start_offset_seconds == 12.5
        assert manager.is_current(session, handle)

    @pytest.mark.asyncio
    async def test_start_replaces_previous_decoder(self, manager, session, spawner):
        first = await manager.start(session, "https://media.example/1/audio")
        second = await manager.start(session, "https://media.example/2/audio")

        assert first.killed is True
        assert session.decoder is second
        assert spawner.alive == [second]
        assert not manager.is_current(session, first)

    @pytest.mark.asyncio
    async def test_stop_kills_and_releases(self, manager, session):
        handle = await manager.start(session, "https://media.example/1/audio")

        assert manager.stop(session) is True
        assert handle.killed is True
        assert session.decoder is None
        assert manager.stop(session) is False

    @pytest.mark.asyncio
    async def test_kill_errors_are_contained(self, manager, session):
        handle = MagicMock()
        handle.kill.side_effect = ProcessLookupError()
        session.bind_decoder(handle)

        assert manager.stop(session) is True
        assert session.decoder is None

    @pytest.mark.asyncio
    async def test_spawn_failure_propagates(self, manager, session, spawner):
        spawner.failures.append(DecoderSpawnError("FFmpeg executable was not found"))

        with pytest.raises(DecoderSpawnError):
            await manager.start(session, "https://media.example/1/audio")
        assert session.decoder is None

    @pytest.mark.asyncio
    async def test_exit_is_reported(self, manager, session, on_exit):
        handle = await manager.start(session, "https://media.example/1/audio")

        handle.exit(1)
        for _ in range(3):
            await asyncio.sleep(0)

        on_exit.assert_awaited_once_with(7, handle, 1)
