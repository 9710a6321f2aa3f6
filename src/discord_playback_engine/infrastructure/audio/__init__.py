"""Audio infrastructure - yt-dlp extraction and FFmpeg decoding."""

from discord_playback_engine.infrastructure.audio.ffmpeg_decoder import (
    FFmpegConfig,
    FFmpegDecoderHandle,
    FFmpegDecoderSpawner,
)
from discord_playback_engine.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpItemInfo,
    YtDlpOpts,
)
from discord_playback_engine.infrastructure.audio.ytdlp_resolver import (
    YtDlpItemResolver,
    YtDlpStreamExtractor,
)

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "FFmpegConfig",
    "FFmpegDecoderHandle",
    "FFmpegDecoderSpawner",
    "YtDlpItemInfo",
    "YtDlpItemResolver",
    "YtDlpOpts",
    "YtDlpStreamExtractor",
]
