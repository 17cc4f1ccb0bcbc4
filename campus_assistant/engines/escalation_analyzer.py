"""
Escalation Analyzer - decide whether a user turn needs a human agent

Deterministic weighted-signal scorer:
1. Complexity / frustration phrase signals
2. Repeated-query bonus from recent conversation context
3. First matching department rule (registration order)
4. score = 0.3*complexity + 0.4*frustration + 0.2*specificity + 0.1*urgency
"""

from typing import Any, Iterable, List, Optional, Sequence

from campus_assistant.engines import escalation_config as cfg
from campus_assistant.errors import InvalidRequest
from campus_assistant.models import (
    EscalationAssessment,
    EscalationRecommendation,
    EscalationRule,
    EscalationSignals,
)
from campus_assistant.utils.logging_utils import get_logger

logger = get_logger()


def word_overlap_similarity(first: str, second: str) -> float:
    """|intersection| / |union| over lower-cased whitespace tokens."""
    words1 = set(str(first or "").lower().split())
    words2 = set(str(second or "").lower().split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def _turn_text(turn: Any) -> str:
    if isinstance(turn, str):
        return turn
    if isinstance(turn, dict):
        return str(turn.get("message") or turn.get("content") or "")
    return str(getattr(turn, "message", "") or "")


class EscalationAnalyzer:
    def __init__(self, rules: Optional[Iterable[EscalationRule]] = None):
        # Registration order is match order
        self.rules: List[EscalationRule] = list(cfg.ESCALATION_RULES if rules is None else rules)
        self._rule_triggers = [(rule, [t.lower() for t in rule.triggers]) for rule in self.rules]

    def analyze(self, message: str, recent_context: Optional[Sequence[Any]] = None) -> EscalationAssessment:
        if not message or not str(message).strip():
            raise InvalidRequest("Message must not be empty")

        message_lower = str(message).lower()
        signals = EscalationSignals()

        signals.complexity = sum(1 for phrase in cfg.COMPLEXITY_PHRASES if phrase in message_lower)
        signals.frustration = sum(1 for phrase in cfg.FRUSTRATION_PHRASES if phrase in message_lower)

        if self._is_repeated_query(message, recent_context):
            signals.frustration += cfg.REPEAT_BONUS

        matched_rule = self.match_rule(message_lower)

        score = round(
            signals.complexity * cfg.WEIGHT_COMPLEXITY
            + signals.frustration * cfg.WEIGHT_FRUSTRATION
            + signals.specificity * cfg.WEIGHT_SPECIFICITY
            + signals.urgency * cfg.WEIGHT_URGENCY,
            6,
        )
        should_escalate = score >= cfg.ESCALATE_SCORE or matched_rule is not None

        assessment = EscalationAssessment(
            signals=signals,
            matched_rule=matched_rule,
            score=score,
            should_escalate=should_escalate,
            confidence=min(score / cfg.CONFIDENCE_SCALE, 1.0),
            recommendation=self.recommend(score, matched_rule),
        )
        logger.info(
            f"[Escalation] score={score:.2f} rule={matched_rule.name if matched_rule else None} "
            f"escalate={should_escalate}"
        )
        return assessment

    def match_rule(self, message_lower: str) -> Optional[EscalationRule]:
        # Substring containment, so "emi" also fires inside "premium"
        for rule, triggers in self._rule_triggers:
            if any(trigger in message_lower for trigger in triggers):
                return rule
        return None

    def _is_repeated_query(self, message: str, recent_context: Optional[Sequence[Any]]) -> bool:
        if not recent_context or len(recent_context) < cfg.REPEAT_MIN_CONTEXT:
            return False
        recent = list(recent_context)[-cfg.REPEAT_WINDOW:]
        similar = [
            turn for turn in recent
            if word_overlap_similarity(_turn_text(turn), message) > cfg.REPEAT_SIMILARITY
        ]
        return len(similar) >= cfg.REPEAT_MIN_MATCHES

    @staticmethod
    def recommend(score: float, matched_rule: Optional[EscalationRule]) -> Optional[EscalationRecommendation]:
        if matched_rule:
            return EscalationRecommendation(
                priority=matched_rule.priority,
                department=matched_rule.department,
                estimated_wait_time_seconds=matched_rule.estimated_wait_time_seconds,
                reason=f"matched rule: {matched_rule.name}",
            )

        if score >= cfg.URGENT_SCORE:
            return EscalationRecommendation(
                priority="urgent",
                department=cfg.GENERAL_DEPARTMENT,
                estimated_wait_time_seconds=cfg.URGENT_WAIT_SECONDS,
                reason="High complexity/frustration detected",
            )
        elif score >= cfg.ESCALATE_SCORE:
            return EscalationRecommendation(
                priority="medium",
                department=cfg.GENERAL_DEPARTMENT,
                estimated_wait_time_seconds=cfg.MEDIUM_WAIT_SECONDS,
                reason="Moderate escalation signals",
            )

        return None
