"""Port interface for turning a canonical source URL into a direct stream URL."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StreamUrlExtractor(ABC):
    """Resolves direct, time-limited media URLs. Must be safe to call repeatedly."""

    @abstractmethod
    async def extract(self, source_url: str) -> str:
        """Return a directly fetchable stream URL for *source_url*.

        Raises:
            ResolutionFailureError: If no stream URL could be obtained.
        """
        ...
