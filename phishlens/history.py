import logging
from collections import OrderedDict
from typing import List, Optional

from phishlens.schema import AnalysisResult, EmailInput, HistoryItem

logger = logging.getLogger(__name__)

NO_SUBJECT = "(No Subject)"


class ScanHistory:
    """In-memory scan history for one session, newest entry first."""

    def __init__(self, limit: int = 100):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._items: List[HistoryItem] = []

    def record(self, email: EmailInput, result: AnalysisResult) -> HistoryItem:
        item = HistoryItem(
            id=result.id,
            subject=email.subject or NO_SUBJECT,
            date=result.timestamp.astimezone().date().isoformat(),
            label=result.prediction,
            confidence=result.confidence,
        )
        self._items.insert(0, item)
        del self._items[self.limit :]
        return item

    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class SessionHistories:
    """
    Maps a session id to its ScanHistory; nothing survives a restart.

    At most session_limit sessions are kept. Recording into a new session
    beyond that evicts the least recently used one.
    """

    def __init__(self, limit: int = 100, session_limit: int = 1000):
        if session_limit < 1:
            raise ValueError("Session limit must be at least 1")
        self.limit = limit
        self.session_limit = session_limit
        self._sessions: "OrderedDict[str, ScanHistory]" = OrderedDict()

    def get(self, session_id: str) -> ScanHistory:
        """Return the session's history, creating it if needed."""
        history = self.find(session_id)
        if history is None:
            logger.debug("Creating scan history for session %s", session_id)
            history = self._sessions[session_id] = ScanHistory(self.limit)
            while len(self._sessions) > self.session_limit:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("Evicted scan history for session %s", evicted)
        return history

    def find(self, session_id: str) -> Optional[ScanHistory]:
        """Return the session's history without creating one."""
        history = self._sessions.get(session_id)
        if history is not None:
            self._sessions.move_to_end(session_id)
        return history

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
