import pytest

from concert_manager.models import Feedback, FeedbackCategory, SentimentType
from concert_manager.modules.feedback import FeedbackStore, analyze_sentiment
from concert_manager.queues import PriorityQueue


@pytest.fixture
def feedback(tmp_path):
    return FeedbackStore(str(tmp_path / "feedback.dat"))


def analysed(rating, comments):
    entry = Feedback(1, 1, 1, rating, comments)
    analyze_sentiment(entry)
    return entry


@pytest.mark.parametrize("rating, comments, sentiment, escalated", [
    (5, "Loved it", SentimentType.POSITIVE, False),
    (3, "Great sound, brilliant lights", SentimentType.POSITIVE, False),
    (3, "It was fine", SentimentType.NEUTRAL, False),
    (2, "Boring set", SentimentType.NEGATIVE, False),
    (1, "Worst night ever", SentimentType.NEGATIVE, True),
    (5, "Amazing, but security was missing at the exit", SentimentType.CRITICAL, True),
])
def test_sentiment(rating, comments, sentiment, escalated):
    entry = analysed(rating, comments)
    assert entry.sentiment == sentiment
    assert entry.requires_escalation is escalated


def test_escalation_reasons():
    assert analysed(1, "meh").escalation_reason == "1-star rating"
    assert analysed(4, "Medical help took ages").escalation_reason == "Critical keywords detected"
    assert analysed(4, "ok").escalation_reason == ""


def test_rating_must_be_one_to_five(feedback):
    with pytest.raises(ValueError):
        feedback.create_feedback(1, 1, 0, "")
    with pytest.raises(ValueError):
        feedback.create_feedback(1, 1, 6, "")
    assert feedback.count() == 0


def test_urgent_queue_serves_lowest_rating_first(feedback):
    feedback.create_feedback(1, 1, 4, "Fire exit was blocked")
    one_star = feedback.create_feedback(1, 2, 1, "Awful")
    one_star_critical = feedback.create_feedback(1, 3, 1, "Unsafe crowd")
    feedback.create_feedback(1, 4, 5, "Excellent")

    urgent = feedback.get_urgent_feedback()
    assert [f.feedback_id for f in urgent] == [one_star_critical.feedback_id,
                                               one_star.feedback_id, 1]


def test_resolving_takes_feedback_off_the_queue(feedback):
    entry = feedback.create_feedback(1, 1, 1, "Awful")
    calm = feedback.create_feedback(1, 2, 4, "Nice")

    assert feedback.resolve_urgent_feedback(calm.feedback_id) is False
    assert feedback.resolve_urgent_feedback(entry.feedback_id)
    assert feedback.get_urgent_feedback() == []
    assert feedback.resolve_urgent_feedback(entry.feedback_id) is False


def test_reload_rebuilds_sentiment_and_queue(feedback):
    open_case = feedback.create_feedback(1, 1, 1, "Terrible", FeedbackCategory.SOUND)
    closed_case = feedback.create_feedback(1, 2, 2, "Dangerous stairs")
    feedback.resolve_urgent_feedback(closed_case.feedback_id)

    reloaded = FeedbackStore(feedback.file_path)
    assert [f.feedback_id for f in reloaded.get_urgent_feedback()] == [open_case.feedback_id]
    assert reloaded.get_feedback_by_id(closed_case.feedback_id).sentiment == SentimentType.CRITICAL
    assert reloaded.get_feedback_by_id(closed_case.feedback_id).resolved
    assert reloaded.get_feedback_by_id(open_case.feedback_id).category == FeedbackCategory.SOUND


def test_averages_and_low_rated_events(feedback):
    for concert_id, rating in ((1, 5), (1, 4), (2, 2), (2, 2), (3, 1)):
        feedback.create_feedback(concert_id, 9, rating, "")

    assert feedback.get_event_average_rating(1) == 4.5
    assert feedback.get_event_average_rating(42) == 0.0
    assert feedback.get_average_ratings() == {1: 4.5, 2: 2.0, 3: 1.0}
    assert feedback.get_low_rated_events() == [2, 3]


def test_sentiment_report(feedback):
    assert feedback.generate_sentiment_report(1) == "No feedback available for event 1"

    feedback.create_feedback(1, 1, 2, "Poor sound")
    feedback.create_feedback(1, 2, 1, "Bad")
    report = feedback.generate_sentiment_report(1)

    assert report.startswith("=== Sentiment Analysis Report for Event 1 ===\n")
    assert "Average Rating: 1.50/5.0" in report
    assert "  Negative: 2 (100%)" in report
    assert "WARNING: Event flagged for low rating (<2.5)" in report


def test_delete_feedback_leaves_the_queue(feedback):
    entry = feedback.create_feedback(1, 1, 1, "Awful")
    assert feedback.delete_feedback(entry.feedback_id)
    assert feedback.get_urgent_feedback() == []


def test_priority_queue_keeps_insertion_order_for_ties():
    queue = PriorityQueue()
    queue.enqueue("low", 1)
    queue.enqueue("first", 5)
    queue.enqueue("second", 5)

    assert queue.size() == 3
    assert queue.peek() == "first"
    assert queue.dequeue() == "first"
    assert queue.items() == ["second", "low"]
    assert queue.remove("low")
    assert not queue.remove("missing")
    queue.clear()
    assert queue.is_empty()
    assert queue.dequeue() is None
