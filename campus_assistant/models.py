"""
Domain records shared by the ingestion, search and handoff engines.

Knowledge records are frozen: a KnowledgeDocument is replaced on
re-ingestion, never edited. HandoffRequest is the only mutable record and
changes only through HandoffQueue status transitions.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Knowledge ──────────────────────────────────────────────────────────────

ENTITY_FEE = "fee"
ENTITY_DATE = "date"


@dataclass(frozen=True)
class Section:
    title: str
    body: str
    source_offset: int


@dataclass(frozen=True)
class FAQ:
    question: str
    answer: str
    language: str


@dataclass(frozen=True)
class Entity:
    kind: str              # "fee" or "date"
    value: str
    context_snippet: str


@dataclass(frozen=True)
class Topic:
    keyword: str
    frequency: int
    relevance: float


@dataclass(frozen=True)
class DocumentMetadata:
    source_description: str
    ingested_at: str
    detected_language: str
    content_length: int
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SegmentationResult:
    sections: Tuple[Section, ...]
    faqs: Tuple[FAQ, ...]
    entities: Tuple[Entity, ...]
    topics: Tuple[Topic, ...]
    detected_language: str


@dataclass(frozen=True)
class KnowledgeDocument:
    identity: str
    sections: Tuple[Section, ...]
    faqs: Tuple[FAQ, ...]
    entities: Tuple[Entity, ...]
    topics: Tuple[Topic, ...]
    metadata: DocumentMetadata

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeDocument":
        meta = data.get("metadata") or {}
        return cls(
            identity=str(data["identity"]),
            sections=tuple(Section(**s) for s in data.get("sections", [])),
            faqs=tuple(FAQ(**f) for f in data.get("faqs", [])),
            entities=tuple(Entity(**e) for e in data.get("entities", [])),
            topics=tuple(Topic(**t) for t in data.get("topics", [])),
            metadata=DocumentMetadata(
                source_description=str(meta.get("source_description", "")),
                ingested_at=str(meta.get("ingested_at", "")),
                detected_language=str(meta.get("detected_language", "")),
                content_length=int(meta.get("content_length", 0)),
                extra=dict(meta.get("extra") or {}),
            ),
        )


@dataclass(frozen=True)
class SearchHit:
    document_id: str
    part_id: str
    score: float


# ── Escalation ─────────────────────────────────────────────────────────────

PRIORITY_WEIGHTS = {"urgent": 3, "high": 2, "medium": 1, "low": 0}


@dataclass(frozen=True)
class EscalationRule:
    name: str
    triggers: Tuple[str, ...]
    priority: str
    department: str
    estimated_wait_time_seconds: int


@dataclass
class EscalationSignals:
    complexity: int = 0
    frustration: int = 0
    specificity: int = 0
    urgency: int = 0


@dataclass(frozen=True)
class EscalationRecommendation:
    priority: str
    department: str
    estimated_wait_time_seconds: int
    reason: str


@dataclass(frozen=True)
class EscalationAssessment:
    signals: EscalationSignals
    matched_rule: Optional[EscalationRule]
    score: float
    should_escalate: bool
    confidence: float
    recommendation: Optional[EscalationRecommendation]

    @property
    def priority(self) -> str:
        if self.recommendation is None:
            return "low"
        return self.recommendation.priority

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConversationTurn:
    message: str
    language: str
    role: str = "user"
    timestamp: str = ""


# ── Handoff ────────────────────────────────────────────────────────────────

class HandoffStatus:
    PENDING = "pending"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"

    TRANSITIONS = {
        PENDING: {ASSIGNED, ABANDONED},
        ASSIGNED: {RESOLVED},
        RESOLVED: set(),
        ABANDONED: set(),
    }
    TERMINAL = {RESOLVED, ABANDONED}


@dataclass
class HandoffRequest:
    id: str
    user_id: str
    created_at: str
    conversation_context: Tuple[ConversationTurn, ...]
    escalation_assessment: EscalationAssessment
    status: str
    queue_position: int
    estimated_wait_time_seconds: int
    department: str
    language: str
    assigned_agent: Optional[str] = None
    updated_at: Optional[str] = None
    close_reason: Optional[str] = None
    history: List[Dict[str, str]] = field(default_factory=list)

    @property
    def priority(self) -> str:
        return self.escalation_assessment.priority

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["priority"] = self.priority
        return data

    def summary(self) -> Dict[str, Any]:
        """Status view without the conversation transcript."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "language": self.language,
            "queue_position": self.queue_position,
            "estimated_wait_time_seconds": self.estimated_wait_time_seconds,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "assigned_agent": self.assigned_agent,
            "close_reason": self.close_reason,
        }

    def public_status(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "queue_position": self.queue_position,
            "estimated_wait_time_seconds": self.estimated_wait_time_seconds,
        }


@dataclass(frozen=True)
class HandoffOutcome:
    handoff_id: str
    queue_position: int
    estimated_wait_time_seconds: int
    confirmation_message: str
