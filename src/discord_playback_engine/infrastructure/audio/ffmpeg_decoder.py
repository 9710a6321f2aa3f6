"""
FFmpeg Decoder

Infrastructure component that runs FFmpeg as an external process turning a
direct stream URL into raw PCM (s16le, 48 kHz, stereo) on its stdout.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass
from typing import IO

from discord_playback_engine.application.interfaces.decoder import DecoderHandle, DecoderSpawner
from discord_playback_engine.config.settings import AudioSettings
from discord_playback_engine.domain.shared.exceptions import DecoderSpawnError
from discord_playback_engine.domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

PCM_SAMPLE_RATE = 48000
PCM_CHANNELS = 2


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio decoding."""

    executable: str = "ffmpeg"

    # Reconnection settings for streaming
    reconnect: bool = True
    reconnect_streamed: bool = True
    reconnect_delay_max: int = 5

    # Audio processing
    disable_video: bool = True
    fade_in_seconds: float = 0.0

    # Seconds between liveness checks while waiting for exit
    poll_interval: float = 0.25

    def get_before_args(self, start_offset_seconds: float = 0.0) -> list[str]:
        """Arguments placed before ``-i`` (input options)."""
        args = ["-nostdin", "-hide_banner", "-loglevel", "error"]
        if self.reconnect:
            args += ["-reconnect", "1"]
        if self.reconnect_streamed:
            args += ["-reconnect_streamed", "1"]
        if self.reconnect_delay_max:
            args += ["-reconnect_delay_max", str(self.reconnect_delay_max)]
        # Input-side seek: fast, and keeps the offset relative to the source start
        if start_offset_seconds > 0:
            args += ["-ss", f"{start_offset_seconds:.3f}"]
        return args

    def get_output_args(self) -> list[str]:
        args = []
        if self.disable_video:
            args.append("-vn")
        if self.fade_in_seconds > 0:
            args += ["-af", f"afade=t=in:ss=0:d={self.fade_in_seconds}"]
        args += [
            "-ac", str(PCM_CHANNELS),
            "-ar", str(PCM_SAMPLE_RATE),
            "-f", "s16le",
            "pipe:1",
        ]
        return args

    def build_args(self, stream_url: str, start_offset_seconds: float = 0.0) -> list[str]:
        """Full argv for decoding *stream_url* from *start_offset_seconds*."""
        return [
            self.executable,
            *self.get_before_args(start_offset_seconds),
            "-i",
            stream_url,
            *self.get_output_args(),
        ]


class FFmpegDecoderHandle(DecoderHandle):
    """Wraps a running FFmpeg ``Popen``."""

    def __init__(self, process: subprocess.Popen[bytes], poll_interval: float = 0.25) -> None:
        self._process = process
        self._poll_interval = poll_interval

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def stdout(self) -> IO[bytes]:
        assert self._process.stdout is not None
        return self._process.stdout

    @property
    def returncode(self) -> int | None:
        return self._process.poll()

    def kill(self) -> None:
        if self._process.poll() is None:
            self._process.kill()

    async def wait(self) -> int:
        # Polling keeps a long-running decoder from pinning an executor thread.
        while (code := self._process.poll()) is None:
            await asyncio.sleep(self._poll_interval)
        return code


class FFmpegDecoderSpawner(DecoderSpawner):
    """Starts one FFmpeg process per play-through.

    stderr is discarded: FFmpeg is noisy and liveness is judged by exit code.
    """

    def __init__(
        self, settings: AudioSettings | None = None, config: FFmpegConfig | None = None
    ) -> None:
        """Initialize the spawner.

        Args:
            settings: Audio settings from application config.
            config: FFmpeg-specific configuration.
        """
        self._settings = settings or AudioSettings()
        self._config = config or FFmpegConfig(
            executable=self._settings.ffmpeg_executable,
            reconnect_delay_max=self._settings.reconnect_delay_max,
        )

    @property
    def config(self) -> FFmpegConfig:
        return self._config

    async def spawn(self, stream_url: str, start_offset_seconds: float = 0.0) -> DecoderHandle:
        args = self._config.build_args(stream_url, start_offset_seconds)
        try:
            process = await asyncio.to_thread(
                subprocess.Popen,
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise DecoderSpawnError(
                ErrorMessages.DECODER_NOT_FOUND.format(executable=self._config.executable),
                hint=ErrorMessages.DECODER_HINT,
            ) from e
        except OSError as e:
            raise DecoderSpawnError(
                ErrorMessages.DECODER_SPAWN_FAILED.format(error=e),
                hint=ErrorMessages.DECODER_HINT,
            ) from e

        return FFmpegDecoderHandle(process, poll_interval=self._config.poll_interval)
