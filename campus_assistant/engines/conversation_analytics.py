"""
Conversation Analytics for the Campus Assistant

Tracks:
1. Per-user running transcripts
2. Language and intent histograms
3. Running handoff rate
4. Aggregate report (read-only projection)
"""

import copy
import math
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from campus_assistant.config import Config
from campus_assistant.errors import InvalidRequest
from campus_assistant.models import HandoffRequest


TOP_LANGUAGES = 5
TOP_INTENTS = 10


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationAnalytics:
    """Passive observer of chat turns and handoff events."""

    def __init__(self):
        self.conversations: Dict[str, Dict[str, Any]] = {}
        self.total_conversations = 0
        self.total_messages = 0
        self.handoff_count = 0
        self.handoff_rate = 0.0
        self.language_distribution: Counter = Counter()
        self.intent_distribution: Counter = Counter()
        self._lock = threading.Lock()

    def record(self, user_id: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        """Record a chat message for a user."""
        if not user_id:
            raise InvalidRequest("user_id is required")
        meta = dict(metadata or {})
        with self._lock:
            conversation = self._open_locked(user_id, meta.get("language"))
            conversation["messages"].append({
                "timestamp": _now_iso(),
                "message": message,
                **meta,
            })
            self.total_messages += 1

            if meta.get("language"):
                self.language_distribution[meta["language"]] += 1
            if meta.get("intent"):
                self.intent_distribution[meta["intent"]] += 1

    def record_handoff(self, handoff_request: HandoffRequest):
        """Update the running handoff rate: (rate * (N - 1) + 1) / N."""
        with self._lock:
            conversation = self._open_locked(handoff_request.user_id, handoff_request.language)
            conversation["handoffs"].append(handoff_request.id)
            n = self.total_conversations
            self.handoff_rate = (self.handoff_rate * (n - 1) + 1) / n
            self.handoff_count += 1

    def _open_locked(self, user_id: str, language: Optional[str]) -> Dict[str, Any]:
        conversation = self.conversations.get(user_id)
        if conversation is None:
            conversation = {
                "id": user_id,
                "start_time": _now_iso(),
                "messages": [],
                "handoffs": [],
                "language": language or Config.BASELINE_LANGUAGE,
                "resolved": False,
            }
            self.conversations[user_id] = conversation
            self.total_conversations += 1
        return conversation

    def transcript(self, user_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            conversation = self.conversations.get(user_id)
            return copy.deepcopy(conversation["messages"]) if conversation else []

    def report(self) -> Dict[str, Any]:
        """Analytics snapshot. Never mutates state."""
        with self._lock:
            conversations = list(self.conversations.values())
            average_length = 0
            if conversations:
                # Halves round up
                average_length = math.floor(sum(len(c["messages"]) for c in conversations) / len(conversations) + 0.5)
            return {
                "total_conversations": self.total_conversations,
                "total_messages": self.total_messages,
                "language_distribution": dict(self.language_distribution),
                "intent_distribution": dict(self.intent_distribution),
                "handoff_count": self.handoff_count,
                "handoff_rate": self.handoff_rate,
                "average_conversation_length": average_length,
                "top_languages": self.language_distribution.most_common(TOP_LANGUAGES),
                "top_intents": self.intent_distribution.most_common(TOP_INTENTS),
                "generated_at": _now_iso(),
            }
