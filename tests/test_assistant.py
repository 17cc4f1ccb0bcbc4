import pytest

from campus_assistant.errors import ExtractionFailed, InvalidRequest, UnsupportedFormat

from conftest import FEE_FAQ_TEXT, POLICY_TEXT

PORTAL_MESSAGE = "I am frustrated, the portal not working and I get an error, please help me immediately"


def test_ingest_and_search(assistant):
    result = assistant.ingest_document(FEE_FAQ_TEXT.encode("utf-8"), "txt", {"filename": "fees.txt"})

    assert result["faqs_count"] == 1
    assert result["entities_count"] == 2
    assert result["detected_language"] == "en"
    assert result["content_length"] == len(FEE_FAQ_TEXT)

    hits = assistant.search("fee")
    assert hits
    assert all(h.document_id == result["document_id"] for h in hits)
    assert f"{result['document_id']}_faq_0" in [h.part_id for h in hits]


def test_ingest_failures_are_recorded(assistant):
    with pytest.raises(UnsupportedFormat):
        assistant.ingest_document(b"data", "xlsx")
    with pytest.raises(ExtractionFailed):
        assistant.ingest_document(b"", "txt")

    history = assistant.index_manager.get_history()
    assert [h["success"] for h in history] == [False, False]
    assert history[0]["error"] == "extraction_failed"
    assert len(assistant.store) == 0


def test_index_status_and_reindex(assistant):
    assert assistant.index_manager.get_status()["health"] == "critical"

    assistant.ingest_document(POLICY_TEXT.encode("utf-8"), "txt")
    result = assistant.index_manager.reindex("test")

    assert result["success"]
    assert result["document_count"] == 1
    status = assistant.index_manager.get_status()
    assert status["health"] == "healthy"
    assert status["last_index_count"] == 1


def test_search_limit_is_capped(assistant):
    assistant.ingest_document(POLICY_TEXT.encode("utf-8"), "txt")
    assert len(assistant.search("hostel", limit=10_000)) <= 50


def test_non_escalating_message_is_logged_only(assistant):
    result = assistant.assess_and_maybe_escalate("u1", "What are the library hours?")

    assert not result.escalated
    assert result.handoff is None
    assert assistant.queue_status()["total_in_queue"] == 0
    assert assistant.analytics.report()["intent_distribution"] == {"general": 1}


def test_escalation_creates_handoff(assistant):
    result = assistant.assess_and_maybe_escalate("u1", PORTAL_MESSAGE, [])

    assert result.escalated
    assert result.assessment.matched_rule.name == "technical_issues"
    assert result.handoff.queue_position == 1
    assert assistant.queue_status() == {
        "total_in_queue": 1,
        "average_wait_minutes": 3,
        "department_breakdown": {"IT": 1},
    }

    request = assistant.queue.get(result.handoff.handoff_id)
    assert request.conversation_context[-1].message == PORTAL_MESSAGE

    report = assistant.analytics.report()
    assert report["handoff_count"] == 1
    assert report["intent_distribution"] == {"technical_issues": 1}


def test_session_history_feeds_repetition(assistant):
    question = "how do i reset my student portal password"
    for _ in range(4):
        assistant.record_message("u1", question)

    result = assistant.assess_and_maybe_escalate("u1", question)
    assert result.assessment.signals.frustration == 2


def test_record_message_validation(assistant):
    with pytest.raises(InvalidRequest):
        assistant.record_message("u1", "  ")
    with pytest.raises(InvalidRequest):
        assistant.assess_and_maybe_escalate("", "hello")


def test_record_message_detects_language(assistant):
    turn = assistant.record_message("u1", "छात्रावास शुल्क कितना है")
    assert turn.language == "hi"
    assert assistant.analytics.report()["language_distribution"] == {"hi": 1}
