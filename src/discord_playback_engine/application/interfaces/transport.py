"""Port interface for the real-time transport connection a sink is bound to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable


class TransportConnection(ABC):
    """A voice connection delivering sink output to its destination."""

    @abstractmethod
    async def wait_ready(self, timeout: float) -> None:
        """Wait until the connection can carry audio.

        Raises:
            TimeoutError: If the connection is not ready within *timeout* seconds.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def set_on_disconnected(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Register a coroutine function invoked when the connection drops unexpectedly."""
        ...
