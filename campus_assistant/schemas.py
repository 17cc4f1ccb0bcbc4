from pydantic import BaseModel, ConfigDict, field_validator
from typing import Dict, List, Optional


def _require_text(value: str, field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(f"{field_name} must not be empty")
    return text


class AdminLoginRequest(BaseModel):
    password: str


class TokenResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in_seconds: int


class IngestionResponse(BaseModel):
    success: bool = True
    document_id: str
    sections_count: int
    faqs_count: int
    entities_count: int
    detected_language: str
    content_length: int


class SearchHitResponse(BaseModel):
    document_id: str
    part_id: str
    score: float


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHitResponse] = []
    message: Optional[str] = None


class ContextTurn(BaseModel):
    message: str
    language: Optional[str] = None
    role: str = "user"

    model_config = ConfigDict(extra="ignore")


class EscalationRequest(BaseModel):
    user_id: str
    message: str
    recent_context: Optional[List[ContextTurn]] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("user_id")
    @classmethod
    def _check_user(cls, value: str) -> str:
        return _require_text(value, "user_id")

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        return _require_text(value, "message")


class SignalsResponse(BaseModel):
    complexity: int
    frustration: int
    specificity: int
    urgency: int


class RecommendationResponse(BaseModel):
    priority: str
    department: str
    estimated_wait_time_seconds: int
    reason: str


class AssessmentResponse(BaseModel):
    signals: SignalsResponse
    matched_rule: Optional[str] = None
    score: float
    should_escalate: bool
    confidence: float
    recommendation: Optional[RecommendationResponse] = None


class HandoffOutcomeResponse(BaseModel):
    handoff_id: str
    queue_position: int
    estimated_wait_time_seconds: int
    confirmation_message: str


class EscalationResponse(BaseModel):
    escalated: bool
    assessment: AssessmentResponse
    handoff: Optional[HandoffOutcomeResponse] = None


class QueueStatusResponse(BaseModel):
    total_in_queue: int
    average_wait_minutes: int
    department_breakdown: Dict[str, int] = {}


class MessageRequest(BaseModel):
    user_id: str
    message: str
    language: Optional[str] = None
    intent: Optional[str] = None
    role: str = "user"

    model_config = ConfigDict(extra="ignore")

    @field_validator("user_id")
    @classmethod
    def _check_user(cls, value: str) -> str:
        return _require_text(value, "user_id")

    @field_validator("message")
    @classmethod
    def _check_message(cls, value: str) -> str:
        return _require_text(value, "message")


class AssignRequest(BaseModel):
    agent_id: str

    @field_validator("agent_id")
    @classmethod
    def _check_agent(cls, value: str) -> str:
        return _require_text(value, "agent_id")


class AbandonRequest(BaseModel):
    reason: str = "cancelled"


class HandoffStatusResponse(BaseModel):
    """Unauthenticated view: no user or agent identities."""
    id: str
    status: str
    queue_position: int
    estimated_wait_time_seconds: int
