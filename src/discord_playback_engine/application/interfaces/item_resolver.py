"""Port interface for resolving free-text queries and provider URLs into items."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.playback.entities import Item


class ItemResolver(ABC):
    """Interface for resolving URLs and search queries to playable items."""

    @abstractmethod
    async def resolve(self, query: str, requested_by: str | None = None) -> list["Item"]:
        """Resolve a query, single URL or playlist URL to zero or more items."""
        ...

    @abstractmethod
    def is_url(self, query: str) -> bool:
        ...
