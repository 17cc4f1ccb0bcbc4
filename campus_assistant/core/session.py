import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from campus_assistant.config import Config
from campus_assistant.engines.language_engine import detect_language
from campus_assistant.models import ConversationTurn, utc_now_iso


class ConversationSessions:
    """In-memory bounded recent-turn history per user."""

    def __init__(self, limit: int = Config.CONVERSATION_HISTORY_LIMIT):
        self.limit = limit
        self._store: Dict[str, Deque[ConversationTurn]] = {}
        self._lock = threading.Lock()

    def get_history(self, user_id: str) -> List[ConversationTurn]:
        with self._lock:
            return list(self._store.get(user_id, []))

    def append(self, user_id: str, message: str, role: str = "user", language: Optional[str] = None) -> Optional[ConversationTurn]:
        if not user_id or not message:
            return None
        turn = ConversationTurn(
            message=message,
            language=language or detect_language(message),
            role=role,
            timestamp=utc_now_iso(),
        )
        with self._lock:
            if user_id not in self._store:
                self._store[user_id] = deque(maxlen=self.limit)
            self._store[user_id].append(turn)
        return turn

    def clear(self, user_id: str):
        with self._lock:
            self._store.pop(user_id, None)
