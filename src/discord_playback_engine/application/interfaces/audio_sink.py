"""Port interface for the real-time audio sink."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import BinaryIO

SinkEndCallback = Callable[[BaseException | None], None]
"""Called exactly once per ``play()``, possibly from another thread.

``None`` means the stream finished (idle); an exception means the sink failed.
"""


class AudioSink(ABC):
    """Consumes a raw PCM byte stream (s16le, 48 kHz, stereo) and reports its end."""

    @abstractmethod
    def play(self, stream: BinaryIO, on_end: SinkEndCallback) -> None:
        """Start consuming *stream*. Raises if the sink cannot accept it."""
        ...

    @abstractmethod
    def pause(self) -> bool:
        ...

    @abstractmethod
    def resume(self) -> bool:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop consuming. The pending ``on_end`` callback still fires."""
        ...

    @abstractmethod
    def is_active(self) -> bool:
        """True while a stream is playing or paused."""
        ...
