"""
Handoff Queue Manager - priority-aware queue of human-agent requests

Queue position is computed once, at enqueue time, from the pending set:
pending requests sorted by priority weight (urgent=3, high=2, medium=1, low=0);
the new request lands behind every pending request of equal or higher
priority. Positions already returned to callers are never revised.

Status transitions come from outside (agents, callers, timeouts):
    pending -> assigned -> resolved
    pending -> abandoned
Resolved and abandoned requests move to the archive.
"""

import math
import secrets
import threading
import time
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

from campus_assistant.config import Config
from campus_assistant.engines.language_engine import BASELINE_LANGUAGE, MultilingualResponder, detect_language
from campus_assistant.errors import EscalationSystemUnavailable, HandoffNotFound, InvalidRequest, InvalidTransition
from campus_assistant.models import (
    PRIORITY_WEIGHTS,
    ConversationTurn,
    EscalationAssessment,
    HandoffOutcome,
    HandoffRequest,
    HandoffStatus,
    utc_now_iso,
)
from campus_assistant.utils.logging_utils import get_logger, log_audit

logger = get_logger()


def generate_handoff_id() -> str:
    return f"HO_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def to_turn(turn: Any) -> ConversationTurn:
    """Snapshot a context entry (dict, str or ConversationTurn)."""
    if isinstance(turn, ConversationTurn):
        return turn
    if isinstance(turn, str):
        return ConversationTurn(message=turn, language=detect_language(turn))
    if isinstance(turn, dict):
        message = str(turn.get("message") or turn.get("content") or "")
        return ConversationTurn(
            message=message,
            language=str(turn.get("language") or detect_language(message)),
            role=str(turn.get("role") or "user"),
            timestamp=str(turn.get("timestamp") or ""),
        )
    raise InvalidRequest(f"Unsupported conversation turn type: {type(turn).__name__}")


class HandoffQueue:
    def __init__(
        self,
        analytics=None,
        storage: Optional[MutableMapping[str, HandoffRequest]] = None,
        default_department: str = Config.HANDOFF_DEFAULT_DEPARTMENT,
        default_wait_seconds: int = Config.HANDOFF_DEFAULT_WAIT_SECONDS,
    ):
        self.analytics = analytics
        self._requests: MutableMapping[str, HandoffRequest] = {} if storage is None else storage
        self._archive: Dict[str, HandoffRequest] = {}
        self.default_department = default_department
        self.default_wait_seconds = default_wait_seconds
        self._lock = threading.Lock()

    # ── enqueue ──────────────────────────────────────────────────────────

    def enqueue(
        self,
        user_id: str,
        context: Sequence[Any],
        assessment: EscalationAssessment,
    ) -> HandoffOutcome:
        if not user_id:
            raise InvalidRequest("user_id is required for a handoff")

        turns = tuple(to_turn(turn) for turn in (context or []))
        recommendation = assessment.recommendation
        language = turns[-1].language if turns and turns[-1].language else BASELINE_LANGUAGE

        with self._lock:
            handoff_id = generate_handoff_id()
            while handoff_id in self._requests or handoff_id in self._archive:
                handoff_id = generate_handoff_id()

            request = HandoffRequest(
                id=handoff_id,
                user_id=str(user_id),
                created_at=utc_now_iso(),
                conversation_context=turns,
                escalation_assessment=assessment,
                status=HandoffStatus.PENDING,
                queue_position=self._position_for(assessment.priority),
                estimated_wait_time_seconds=(
                    recommendation.estimated_wait_time_seconds if recommendation else self.default_wait_seconds
                ),
                department=recommendation.department if recommendation else self.default_department,
                language=language,
            )
            request.history.append({"status": HandoffStatus.PENDING, "at": request.created_at})

            try:
                self._requests[handoff_id] = request
            except Exception as e:
                logger.error(f"[HandoffQueue] Storage error on enqueue: {e}", exc_info=True)
                raise EscalationSystemUnavailable("Handoff queue is temporarily unavailable")

        log_audit(
            "HANDOFF_CREATED",
            request.user_id,
            f"{handoff_id} dept={request.department} priority={request.priority} position={request.queue_position}",
        )
        if self.analytics is not None:
            try:
                self.analytics.record_handoff(request)
            except Exception as e:
                logger.warning(f"[HandoffQueue] Analytics logging failed (non-critical): {e}")

        return HandoffOutcome(
            handoff_id=handoff_id,
            queue_position=request.queue_position,
            estimated_wait_time_seconds=request.estimated_wait_time_seconds,
            confirmation_message=self.confirmation_message(request),
        )

    def _position_for(self, priority: str) -> int:
        weight = PRIORITY_WEIGHTS.get(priority, 0)
        ranked = self._pending_locked()
        ahead = [r for r in ranked if PRIORITY_WEIGHTS.get(r.priority, 0) >= weight]
        return len(ahead) + 1

    def _pending_locked(self) -> List[HandoffRequest]:
        pending = [r for r in self._requests.values() if r.status == HandoffStatus.PENDING]
        return sorted(pending, key=lambda r: PRIORITY_WEIGHTS.get(r.priority, 0), reverse=True)

    @staticmethod
    def confirmation_message(request: HandoffRequest) -> str:
        lang = request.language
        if not MultilingualResponder.has_phrase("handoff_confirmation", lang):
            lang = BASELINE_LANGUAGE
        template = MultilingualResponder.get_phrase("handoff_confirmation", lang)
        return template.format(
            position=request.queue_position,
            minutes=math.ceil(request.estimated_wait_time_seconds / 60),
            reference=request.id,
        )

    # ── transitions (external triggers) ──────────────────────────────────

    def assign(self, handoff_id: str, agent_id: str) -> HandoffRequest:
        if not agent_id:
            raise InvalidRequest("agent_id is required to assign a handoff")
        return self._transition(handoff_id, HandoffStatus.ASSIGNED, agent_id=agent_id)

    def resolve(self, handoff_id: str) -> HandoffRequest:
        return self._transition(handoff_id, HandoffStatus.RESOLVED)

    def abandon(self, handoff_id: str, reason: str = "cancelled") -> HandoffRequest:
        return self._transition(handoff_id, HandoffStatus.ABANDONED, reason=reason)

    def _transition(
        self,
        handoff_id: str,
        new_status: str,
        agent_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> HandoffRequest:
        with self._lock:
            request = self._requests.get(handoff_id) or self._archive.get(handoff_id)
            if request is None:
                raise HandoffNotFound(f"No handoff request with id '{handoff_id}'")
            if new_status not in HandoffStatus.TRANSITIONS.get(request.status, set()):
                raise InvalidTransition(
                    f"Cannot move handoff {handoff_id} from {request.status} to {new_status}"
                )

            now = utc_now_iso()
            request.status = new_status
            request.updated_at = now
            if agent_id:
                request.assigned_agent = agent_id
            if reason:
                request.close_reason = reason
            request.history.append({"status": new_status, "at": now})

            if new_status in HandoffStatus.TERMINAL:
                self._archive[handoff_id] = self._requests.pop(handoff_id)

        log_audit("HANDOFF_" + new_status.upper(), request.user_id, f"{handoff_id} agent={request.assigned_agent}")
        return request

    # ── reads ────────────────────────────────────────────────────────────

    def get(self, handoff_id: str) -> HandoffRequest:
        request = self._requests.get(handoff_id) or self._archive.get(handoff_id)
        if request is None:
            raise HandoffNotFound(f"No handoff request with id '{handoff_id}'")
        return request

    def pending(self) -> List[HandoffRequest]:
        with self._lock:
            return self._pending_locked()

    def archived(self) -> List[HandoffRequest]:
        with self._lock:
            return list(self._archive.values())

    def queue_status(self) -> Dict[str, Any]:
        """Aggregate statistics over current pending entries."""
        with self._lock:
            pending = self._pending_locked()

        breakdown: Dict[str, int] = {}
        for request in pending:
            dept = request.department or self.default_department
            breakdown[dept] = breakdown.get(dept, 0) + 1

        average_minutes = 0
        if pending:
            total_wait = sum(r.estimated_wait_time_seconds for r in pending)
            average_minutes = math.ceil(total_wait / len(pending) / 60)

        return {
            "total_in_queue": len(pending),
            "average_wait_minutes": average_minutes,
            "department_breakdown": breakdown,
        }
