"""
Escalation configuration - rules, signal phrases and score thresholds.

Rules are matched in the order listed here; the first match wins.
"""

from typing import List

from campus_assistant.models import EscalationRule

ESCALATION_RULES: List[EscalationRule] = [
    EscalationRule(
        name="complex_financial",
        triggers=("loan", "emi", "refund", "scholarship eligibility", "financial aid calculation"),
        priority="high",
        department="finance",
        estimated_wait_time_seconds=300,
    ),
    EscalationRule(
        name="technical_issues",
        triggers=("portal not working", "login failed", "payment error", "technical problem"),
        priority="urgent",
        department="IT",
        estimated_wait_time_seconds=180,
    ),
    EscalationRule(
        name="academic_complex",
        triggers=("course change", "credit transfer", "grade appeal", "academic calendar"),
        priority="medium",
        department="academic",
        estimated_wait_time_seconds=600,
    ),
    EscalationRule(
        name="admission_complex",
        triggers=("document verification", "eligibility query", "admission appeal"),
        priority="high",
        department="admissions",
        estimated_wait_time_seconds=450,
    ),
    EscalationRule(
        name="complaints",
        triggers=("complaint", "unsatisfied", "problem with", "issue with"),
        priority="medium",
        department="admin",
        estimated_wait_time_seconds=720,
    ),
]

COMPLEXITY_PHRASES = [
    "multiple", "various", "different", "complex", "complicated",
    "several", "many", "numerous", "detailed", "specific",
]

FRUSTRATION_PHRASES = [
    "frustrated", "annoyed", "angry", "upset", "disappointed",
    "not working", "doesn't work", "problem", "issue", "error",
    "help me", "urgent", "immediately", "asap",
]

# Signal weights
WEIGHT_COMPLEXITY = 0.3
WEIGHT_FRUSTRATION = 0.4
WEIGHT_SPECIFICITY = 0.2
WEIGHT_URGENCY = 0.1

ESCALATE_SCORE = 2.0
URGENT_SCORE = 4.0
CONFIDENCE_SCALE = 5.0

# Repeated-query detection
REPEAT_WINDOW = 3
REPEAT_MIN_CONTEXT = 4
REPEAT_SIMILARITY = 0.7
REPEAT_MIN_MATCHES = 2
REPEAT_BONUS = 2

GENERAL_DEPARTMENT = "general"
URGENT_WAIT_SECONDS = 180
MEDIUM_WAIT_SECONDS = 600
