"""
Campus Assistant core - the entrypoints integrators call

One instance per deployment (or per test); nothing here is process-global.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from campus_assistant.config import Config
from campus_assistant.core.session import ConversationSessions
from campus_assistant.engines.conversation_analytics import ConversationAnalytics
from campus_assistant.engines.escalation_analyzer import EscalationAnalyzer
from campus_assistant.engines.handoff_queue import HandoffQueue
from campus_assistant.engines.index_manager import IndexManager
from campus_assistant.engines.knowledge_store import KnowledgeStore
from campus_assistant.errors import InvalidRequest
from campus_assistant.models import EscalationAssessment, HandoffOutcome, SearchHit
from campus_assistant.utils.logging_utils import get_logger, log_audit

logger = get_logger()


@dataclass
class EscalationResult:
    escalated: bool
    assessment: EscalationAssessment
    handoff: Optional[HandoffOutcome] = None


@dataclass
class CampusAssistant:
    store: KnowledgeStore = field(default_factory=KnowledgeStore)
    analyzer: EscalationAnalyzer = field(default_factory=EscalationAnalyzer)
    analytics: ConversationAnalytics = field(default_factory=ConversationAnalytics)
    sessions: ConversationSessions = field(default_factory=ConversationSessions)
    index_manager: Optional[IndexManager] = None
    queue: Optional[HandoffQueue] = None

    def __post_init__(self):
        if self.index_manager is None:
            self.index_manager = IndexManager(store=self.store)
        if self.queue is None:
            self.queue = HandoffQueue(analytics=self.analytics)

    # ── ingestion / search ───────────────────────────────────────────────

    def ingest_document(
        self,
        file_bytes: bytes,
        extension: str,
        metadata: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = self.index_manager.ingest_document(file_bytes, extension, metadata, document_id)
        log_audit(
            "DOCUMENT_INGESTED",
            str((metadata or {}).get("uploaded_by", "admin")),
            f"{result['document_id']} sections={result['sections_count']} faqs={result['faqs_count']}",
        )
        return result

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit]:
        if limit is not None:
            limit = min(limit, Config.SEARCH_MAX_LIMIT)
        return self.store.search(query, limit)

    # ── conversation ─────────────────────────────────────────────────────

    def record_message(self, user_id: str, message: str, metadata: Optional[Dict[str, Any]] = None):
        if not user_id:
            raise InvalidRequest("user_id is required")
        if not message or not message.strip():
            raise InvalidRequest("Message must not be empty")
        meta = dict(metadata or {})
        turn = self.sessions.append(user_id, message, role=meta.get("role", "user"), language=meta.get("language"))
        meta.setdefault("language", turn.language)
        self.analytics.record(user_id, message, meta)
        return turn

    def assess_and_maybe_escalate(
        self,
        user_id: str,
        message: str,
        recent_context: Optional[Sequence[Any]] = None,
    ) -> EscalationResult:
        if not user_id:
            raise InvalidRequest("user_id is required")

        context = list(recent_context) if recent_context is not None else self.sessions.get_history(user_id)
        assessment = self.analyzer.analyze(message, context)

        intent = assessment.matched_rule.name if assessment.matched_rule else "general"
        turn = self.record_message(user_id, message, {"intent": intent})

        if not assessment.should_escalate:
            return EscalationResult(escalated=False, assessment=assessment)

        outcome = self.queue.enqueue(user_id, context + [turn], assessment)
        logger.info(f"[Assistant] Escalated {user_id} -> {outcome.handoff_id} (position {outcome.queue_position})")
        return EscalationResult(escalated=True, assessment=assessment, handoff=outcome)

    def queue_status(self) -> Dict[str, Any]:
        return self.queue.queue_status()
