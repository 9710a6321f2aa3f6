"""Discord voice adapters implementing the TransportConnection and AudioSink ports."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import BinaryIO

import discord

from discord_playback_engine.application.interfaces.audio_sink import AudioSink, SinkEndCallback
from discord_playback_engine.application.interfaces.transport import TransportConnection
from discord_playback_engine.config.settings import AudioSettings
from discord_playback_engine.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

VoiceChannel = discord.VoiceChannel | discord.StageChannel

READY_POLL_INTERVAL: float = 0.1


class DiscordVoiceTransport(TransportConnection):
    """Voice connection for one guild.

    Connects lazily inside ``wait_ready``. Unexpected disconnects are reported
    through ``handle_voice_state_update``, which the bot's
    ``on_voice_state_update`` listener forwards here.
    """

    def __init__(self, channel: VoiceChannel) -> None:
        self._channel = channel
        self._voice_client: discord.VoiceClient | None = None
        self._on_disconnected: Callable[[], Awaitable[None]] | None = None
        self._closing = False

    @property
    def guild_id(self) -> int:
        return self._channel.guild.id

    @property
    def voice_client(self) -> discord.VoiceClient | None:
        return self._voice_client

    async def wait_ready(self, timeout: float) -> None:
        async with asyncio.timeout(timeout):
            vc = self._voice_client or self._existing_voice_client()
            if vc is None:
                vc = await self._channel.connect(self_deaf=True)
            elif vc.channel is not None and vc.channel.id != self._channel.id:
                await vc.move_to(self._channel)
            self._voice_client = vc
            while not vc.is_connected():
                await asyncio.sleep(READY_POLL_INTERVAL)

        self._closing = False
        logger.info(LogTemplates.VOICE_CONNECTED, self._channel.name, self._channel.guild.name)

    def _existing_voice_client(self) -> discord.VoiceClient | None:
        vc = self._channel.guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def disconnect(self) -> None:
        vc, self._voice_client = self._voice_client, None
        if vc is None:
            return
        self._closing = True
        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self.guild_id)

    def is_connected(self) -> bool:
        return self._voice_client is not None and self._voice_client.is_connected()

    def set_on_disconnected(self, callback: Callable[[], Awaitable[None]]) -> None:
        self._on_disconnected = callback

    async def handle_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Fire the disconnect callback when the bot itself is removed from voice."""
        client_user = self._channel.guild.me
        if client_user is None or member.id != client_user.id:
            return
        if before.channel is None or after.channel is not None:
            return
        if self._closing:
            return

        self._voice_client = None
        if self._on_disconnected is not None:
            await self._on_disconnected()


class DiscordAudioSink(AudioSink):
    """Plays raw PCM through the transport's ``discord.VoiceClient``.

    The ``after`` callback runs on discord.py's player thread; ``on_end`` is
    forwarded unchanged and is responsible for getting back onto the loop.
    """

    def __init__(
        self, transport: DiscordVoiceTransport, settings: AudioSettings | None = None
    ) -> None:
        self._transport = transport
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume

    def _voice_client(self) -> discord.VoiceClient | None:
        return self._transport.voice_client

    def play(self, stream: BinaryIO, on_end: SinkEndCallback) -> None:
        vc = self._voice_client()
        if vc is None:
            raise discord.ClientException(
                ErrorMessages.SINK_NOT_ATTACHED.format(session_id=self._transport.guild_id)
            )

        source = discord.PCMVolumeTransformer(discord.PCMAudio(stream), volume=self._volume)
        guild_id = self._transport.guild_id

        def after_callback(error: Exception | None) -> None:
            logger.debug(LogTemplates.VOICE_AFTER_CALLBACK, guild_id, error)
            on_end(error)

        vc.play(source, after=after_callback)

    def pause(self) -> bool:
        vc = self._voice_client()
        if vc is None or not vc.is_playing():
            return False
        vc.pause()
        return True

    def resume(self) -> bool:
        vc = self._voice_client()
        if vc is None or not vc.is_paused():
            return False
        vc.resume()
        return True

    def stop(self) -> None:
        vc = self._voice_client()
        if vc is not None and (vc.is_playing() or vc.is_paused()):
            vc.stop()

    def is_active(self) -> bool:
        vc = self._voice_client()
        return vc is not None and (vc.is_playing() or vc.is_paused())

    def set_volume(self, volume: float) -> bool:
        self._volume = max(0.0, min(2.0, volume))
        vc = self._voice_client()
        if vc is not None and isinstance(vc.source, discord.PCMVolumeTransformer):
            vc.source.volume = self._volume
            return True
        return False
