"""Port interfaces for spawning the external decode process."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO


class DecoderHandle(ABC):
    """A running decode process emitting PCM on its primary output."""

    @property
    @abstractmethod
    def pid(self) -> int | None:
        ...

    @property
    @abstractmethod
    def stdout(self) -> BinaryIO:
        ...

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        ...

    @abstractmethod
    def kill(self) -> None:
        """Hard-kill the process. Safe to call more than once."""
        ...

    @abstractmethod
    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...


class DecoderSpawner(ABC):
    """Starts decode processes for direct stream URLs."""

    @abstractmethod
    async def spawn(self, stream_url: str, start_offset_seconds: float = 0.0) -> DecoderHandle:
        """Spawn a decoder reading *stream_url* from *start_offset_seconds*.

        Raises:
            DecoderSpawnError: If the decoder binary is missing or cannot start.
        """
        ...
