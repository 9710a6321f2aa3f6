"""
Domain Layer

Contains pure playback logic:
- shared/: Cross-cutting exceptions, constrained types and message templates
- playback/: Items, sessions, signals and failure classification
"""

from discord_playback_engine.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
