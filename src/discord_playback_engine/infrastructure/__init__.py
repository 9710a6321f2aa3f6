"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Audio (yt-dlp extraction, FFmpeg decoding)
- Discord (voice transport, audio sink, text-channel notifier)
"""

from discord_playback_engine.infrastructure.discord.notifier import TextChannelNotifier
from discord_playback_engine.infrastructure.discord.voice_adapter import (
    DiscordAudioSink,
    DiscordVoiceTransport,
)

__all__ = [
    "DiscordAudioSink",
    "DiscordVoiceTransport",
    "TextChannelNotifier",
]
