"""
Shared test fixtures for the Campus Assistant.

Usage:
  pytest tests/ -v
"""

import os

# Config reads the environment at import time
os.environ["CAMPUS_ENV"] = "test"
os.environ["SECRET_KEY"] = "campus-assistant-test-secret"
os.environ["ADMIN_PASSWORD"] = "test-admin-password"

import pytest

from campus_assistant.core.assistant import CampusAssistant
from campus_assistant.engines.conversation_analytics import ConversationAnalytics
from campus_assistant.engines.document_segmenter import DocumentSegmenter
from campus_assistant.engines.escalation_analyzer import EscalationAnalyzer
from campus_assistant.engines.handoff_queue import HandoffQueue
from campus_assistant.engines.index_manager import IndexManager
from campus_assistant.engines.knowledge_store import KnowledgeStore
from campus_assistant.models import EscalationAssessment, EscalationRecommendation, EscalationSignals


ADMIN_PASSWORD = "test-admin-password"

FEE_FAQ_TEXT = "Q: What is the fee? A: The fee is ₹50,000 due January 15."

POLICY_TEXT = """Chapter 1 Admissions
Admission to all undergraduate programmes opens in June.
Students must submit transcripts and a transfer certificate.

Chapter 2 Hostel
Hostel rooms are allotted on a first come basis.
The hostel fee is Rs. 12,000 per semester.

Q: When does the library open? A: The library opens at 8 am on weekdays.
"""

HINDI_TEXT = "प्रश्न: परीक्षा कब होगी? उत्तर: परीक्षा मार्च में होगी।"


# ── engines ──────────────────────────────────────────────────────────────


@pytest.fixture
def segmenter():
    return DocumentSegmenter()


@pytest.fixture
def store():
    return KnowledgeStore()


@pytest.fixture
def index_manager(store):
    return IndexManager(store=store)


@pytest.fixture
def analyzer():
    return EscalationAnalyzer()


@pytest.fixture
def analytics():
    return ConversationAnalytics()


@pytest.fixture
def queue(analytics):
    return HandoffQueue(analytics=analytics)


@pytest.fixture
def assistant():
    return CampusAssistant()


def make_assessment(priority=None, department="general", wait_seconds=600, score=2.0):
    """Escalating assessment with an optional recommendation."""
    recommendation = None
    if priority is not None:
        recommendation = EscalationRecommendation(
            priority=priority,
            department=department,
            estimated_wait_time_seconds=wait_seconds,
            reason="test",
        )
    return EscalationAssessment(
        signals=EscalationSignals(frustration=5),
        matched_rule=None,
        score=score,
        should_escalate=True,
        confidence=min(score / 5, 1.0),
        recommendation=recommendation,
    )


# ── API ──────────────────────────────────────────────────────────────────


@pytest.fixture
def client(assistant):
    """FastAPI TestClient around a fresh CampusAssistant."""
    from fastapi.testclient import TestClient

    from main import create_app

    with TestClient(create_app(assistant)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
