"""
Campus Assistant public API

1. Knowledge search (with a localized "not found" message)
2. Escalation assessment and human handoff
3. Conversation message logging
4. Queue and handoff status
"""

from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from campus_assistant.api.dependencies import get_assistant, run_in_engine
from campus_assistant.config import Config
from campus_assistant.core.assistant import CampusAssistant, EscalationResult
from campus_assistant.engines.language_engine import detect_language, get_localized_phrase
from campus_assistant.models import ConversationTurn, EscalationAssessment
from campus_assistant.schemas import (
    EscalationRequest,
    EscalationResponse,
    HandoffStatusResponse,
    MessageRequest,
    QueueStatusResponse,
    SearchResponse,
)

router = APIRouter()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _assessment_payload(assessment: EscalationAssessment) -> Dict[str, Any]:
    return {
        "signals": asdict(assessment.signals),
        "matched_rule": assessment.matched_rule.name if assessment.matched_rule else None,
        "score": assessment.score,
        "should_escalate": assessment.should_escalate,
        "confidence": assessment.confidence,
        "recommendation": asdict(assessment.recommendation) if assessment.recommendation else None,
    }


def _escalation_payload(result: EscalationResult) -> Dict[str, Any]:
    return {
        "escalated": result.escalated,
        "assessment": _assessment_payload(result.assessment),
        "handoff": asdict(result.handoff) if result.handoff else None,
    }


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/search", response_model=SearchResponse)
async def search(
    request: Request,
    q: str = Query(..., description="Free-text query"),
    limit: int = Query(Config.SEARCH_DEFAULT_LIMIT, ge=1),
    assistant: CampusAssistant = Depends(get_assistant),
):
    hits = await run_in_engine(request, assistant.search, q, limit)
    message: Optional[str] = None
    if not hits:
        message = get_localized_phrase("not_found", q)
    return {
        "query": q,
        "results": [asdict(hit) for hit in hits],
        "message": message,
    }


@router.post("/escalation", response_model=EscalationResponse)
async def assess_escalation(
    request: Request,
    body: EscalationRequest,
    assistant: CampusAssistant = Depends(get_assistant),
):
    context = None
    if body.recent_context is not None:
        context = [
            ConversationTurn(
                message=turn.message,
                language=turn.language or detect_language(turn.message),
                role=turn.role,
            )
            for turn in body.recent_context
        ]
    result = await run_in_engine(
        request, assistant.assess_and_maybe_escalate, body.user_id, body.message, context
    )
    return _escalation_payload(result)


@router.post("/messages")
async def record_message(
    body: MessageRequest,
    assistant: CampusAssistant = Depends(get_assistant),
):
    metadata: Dict[str, Any] = {"role": body.role}
    if body.language:
        metadata["language"] = body.language
    if body.intent:
        metadata["intent"] = body.intent
    turn = assistant.record_message(body.user_id, body.message, metadata)
    return {"success": True, "user_id": body.user_id, "language": turn.language}


@router.get("/queue/status", response_model=QueueStatusResponse)
async def queue_status(assistant: CampusAssistant = Depends(get_assistant)):
    return assistant.queue_status()


@router.get("/handoffs/{handoff_id}", response_model=HandoffStatusResponse)
async def handoff_status(handoff_id: str, assistant: CampusAssistant = Depends(get_assistant)):
    return assistant.queue.get(handoff_id).public_status()
