"""Per-engine registry mapping session ids to their Session."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from ...domain.playback.entities import Session
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import SessionId

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns Session lifetime. Each engine instance has its own registry."""

    def __init__(self, history_limit: int = Session.DEFAULT_HISTORY_LIMIT) -> None:
        self._history_limit = history_limit
        self._sessions: dict[SessionId, Session] = {}

    def get(self, session_id: SessionId) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: SessionId) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id, history_limit=self._history_limit)
            self._sessions[session_id] = session
            logger.debug(LogTemplates.SESSION_CREATED, session_id)
        return session

    def remove(self, session_id: SessionId) -> Session | None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug(LogTemplates.SESSION_REMOVED, session_id)
        return session

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))
