"""Port interface for best-effort status notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.playback_models import Notification


class Notifier(ABC):
    """Delivers status text to users. Failures are swallowed by the engine."""

    @abstractmethod
    async def notify(self, notification: "Notification") -> None:
        ...
