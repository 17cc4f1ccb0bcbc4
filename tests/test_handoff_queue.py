import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from campus_assistant.engines.handoff_queue import HandoffQueue
from campus_assistant.engines.language_engine import MultilingualResponder
from campus_assistant.errors import EscalationSystemUnavailable, HandoffNotFound, InvalidTransition
from campus_assistant.models import ConversationTurn, HandoffStatus

from conftest import make_assessment


class FailingStorage(dict):
    def __setitem__(self, key, value):
        raise IOError("storage offline")


def test_positions_follow_priority_not_arrival(queue):
    low = queue.enqueue("u1", [], make_assessment())
    urgent = queue.enqueue("u2", [], make_assessment("urgent", "IT", 180))
    medium = queue.enqueue("u3", [], make_assessment("medium", "academic", 600))

    assert low.queue_position == 1
    assert urgent.queue_position == 1
    assert medium.queue_position == 2


def test_equal_priority_is_fifo(queue):
    first = queue.enqueue("u1", [], make_assessment("high", "finance", 300))
    second = queue.enqueue("u2", [], make_assessment("high", "finance", 300))
    assert (first.queue_position, second.queue_position) == (1, 2)


def test_reported_positions_are_not_revised(queue):
    low = queue.enqueue("u1", [], make_assessment())
    queue.enqueue("u2", [], make_assessment("urgent", "IT", 180))
    assert queue.get(low.handoff_id).queue_position == 1


def test_department_and_wait_from_recommendation(queue):
    outcome = queue.enqueue("u1", [], make_assessment("high", "finance", 300))
    request = queue.get(outcome.handoff_id)

    assert request.department == "finance"
    assert request.status == HandoffStatus.PENDING
    assert outcome.estimated_wait_time_seconds == 300


def test_defaults_without_recommendation(queue):
    outcome = queue.enqueue("u1", [], make_assessment())
    request = queue.get(outcome.handoff_id)

    assert request.department == "general"
    assert outcome.estimated_wait_time_seconds == 600


def test_confirmation_in_english(queue):
    outcome = queue.enqueue("u1", ["my fee payment failed"], make_assessment("urgent", "IT", 180))

    assert outcome.handoff_id.startswith("HO_")
    assert "**Queue position**: 1" in outcome.confirmation_message
    assert "3 minutes" in outcome.confirmation_message
    assert outcome.handoff_id in outcome.confirmation_message


def test_confirmation_in_last_turn_language(queue):
    context = [
        ConversationTurn(message="fee problem", language="en"),
        ConversationTurn(message="मेरा भुगतान नहीं हुआ", language="hi"),
    ]
    outcome = queue.enqueue("u1", context, make_assessment("urgent", "IT", 180))

    expected = MultilingualResponder.PHRASES["handoff_confirmation"]["hi"].format(
        position=1, minutes=3, reference=outcome.handoff_id
    )
    assert outcome.confirmation_message == expected
    assert queue.get(outcome.handoff_id).language == "hi"


def test_confirmation_falls_back_for_untranslated_language(queue):
    context = [ConversationTurn(message="கட்டணம்", language="ta")]
    outcome = queue.enqueue("u1", context, make_assessment())

    assert outcome.confirmation_message.startswith("You've been connected")


def test_context_is_snapshotted(queue):
    context = [{"message": "refund please", "role": "user"}]
    outcome = queue.enqueue("u1", context, make_assessment())
    context.append({"message": "later"})

    turns = queue.get(outcome.handoff_id).conversation_context
    assert len(turns) == 1
    assert turns[0].message == "refund please"
    assert turns[0].language == "en"


def test_assign_then_resolve(queue):
    outcome = queue.enqueue("u1", [], make_assessment())

    assigned = queue.assign(outcome.handoff_id, "agent-7")
    assert assigned.status == HandoffStatus.ASSIGNED
    assert assigned.assigned_agent == "agent-7"
    assert queue.pending() == []

    resolved = queue.resolve(outcome.handoff_id)
    assert resolved.status == HandoffStatus.RESOLVED
    assert [r.id for r in queue.archived()] == [outcome.handoff_id]
    assert [h["status"] for h in resolved.history] == ["pending", "assigned", "resolved"]


def test_abandon_pending(queue):
    outcome = queue.enqueue("u1", [], make_assessment())
    abandoned = queue.abandon(outcome.handoff_id, "timeout")

    assert abandoned.status == HandoffStatus.ABANDONED
    assert abandoned.close_reason == "timeout"


def test_transitions_never_go_backward(queue):
    outcome = queue.enqueue("u1", [], make_assessment())

    with pytest.raises(InvalidTransition):
        queue.resolve(outcome.handoff_id)

    queue.assign(outcome.handoff_id, "agent-1")
    with pytest.raises(InvalidTransition):
        queue.abandon(outcome.handoff_id)
    with pytest.raises(InvalidTransition):
        queue.assign(outcome.handoff_id, "agent-2")

    queue.resolve(outcome.handoff_id)
    with pytest.raises(InvalidTransition):
        queue.resolve(outcome.handoff_id)


def test_unknown_handoff(queue):
    with pytest.raises(HandoffNotFound):
        queue.get("HO_missing")
    with pytest.raises(HandoffNotFound):
        queue.assign("HO_missing", "agent-1")


def test_queue_status_counts_only_pending(queue):
    queue.enqueue("u1", [], make_assessment("urgent", "IT", 180))
    queue.enqueue("u2", [], make_assessment("high", "finance", 300))
    done = queue.enqueue("u3", [], make_assessment("high", "finance", 300))
    queue.abandon(done.handoff_id)

    status = queue.queue_status()
    assert status["total_in_queue"] == 2
    assert status["average_wait_minutes"] == 4
    assert status["department_breakdown"] == {"IT": 1, "finance": 1}


def test_empty_queue_status(queue):
    assert queue.queue_status() == {
        "total_in_queue": 0,
        "average_wait_minutes": 0,
        "department_breakdown": {},
    }


def test_storage_failure_leaves_queue_untouched(analytics):
    queue = HandoffQueue(analytics=analytics, storage=FailingStorage())

    with pytest.raises(EscalationSystemUnavailable):
        queue.enqueue("u1", [], make_assessment("urgent", "IT", 180))

    assert queue.queue_status()["total_in_queue"] == 0
    assert analytics.handoff_count == 0


def test_analytics_failure_is_not_fatal():
    class BrokenAnalytics:
        def record_handoff(self, request):
            raise RuntimeError("analytics down")

    queue = HandoffQueue(analytics=BrokenAnalytics())
    outcome = queue.enqueue("u1", [], make_assessment())
    assert queue.get(outcome.handoff_id).status == HandoffStatus.PENDING


def test_enqueue_records_handoff_in_analytics(queue, analytics):
    queue.enqueue("u1", [], make_assessment())
    report = analytics.report()
    assert report["handoff_count"] == 1
    assert report["handoff_rate"] == 1.0


def test_concurrent_enqueues_get_distinct_positions(queue, analytics):
    workers = 20
    barrier = threading.Barrier(workers)

    def enqueue(n):
        barrier.wait(timeout=5)
        return queue.enqueue(f"u{n}", [], make_assessment("high", "finance", 300)).queue_position

    with ThreadPoolExecutor(max_workers=workers) as pool:
        positions = list(pool.map(enqueue, range(workers)))

    assert sorted(positions) == list(range(1, workers + 1))
    assert len(queue.pending()) == workers
    assert analytics.report()["handoff_count"] == workers
