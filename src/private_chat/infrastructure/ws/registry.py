"""In-process registry of live chat sessions."""
from __future__ import annotations

import logging

from private_chat.services.session import ChatSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks the session behind every open WebSocket so shutdown can close them."""

    def __init__(self) -> None:
        self._sessions: set[ChatSession] = set()

    def add(self, session: ChatSession) -> None:
        self._sessions.add(session)
        logger.debug("Session registered (total=%d)", len(self._sessions))

    def discard(self, session: ChatSession) -> None:
        self._sessions.discard(session)
        logger.debug("Session released (total=%d)", len(self._sessions))

    async def close_all(self) -> None:
        sessions = list(self._sessions)
        self._sessions.clear()
        for session in sessions:
            try:
                await session.close()
            except Exception:
                logger.exception("Error closing session")
        if sessions:
            logger.info("Closed %d live sessions", len(sessions))
