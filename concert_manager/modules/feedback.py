"""
Feedback store with keyword sentiment analysis and an escalation queue.

Sentiment is derived from the rating and comment text every time a record is
created or loaded, so only the raw feedback is persisted.
"""

from collections import Counter
from typing import Dict, List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import Feedback, FeedbackCategory, SentimentType
from concert_manager.queues import PriorityQueue
from concert_manager.store import EntityStore

logger = get_logger(__name__)

POSITIVE_KEYWORDS = (
    "excellent", "amazing", "fantastic", "great", "wonderful",
    "awesome", "perfect", "loved", "brilliant", "outstanding",
)
NEGATIVE_KEYWORDS = (
    "terrible", "awful", "bad", "horrible", "disappointing",
    "poor", "worst", "hate", "boring", "overpriced",
)
CRITICAL_KEYWORDS = (
    "unsafe", "emergency", "injury", "dangerous", "fire",
    "violence", "theft", "medical", "security",
)

LOW_RATING_THRESHOLD = 2.5


def analyze_sentiment(feedback: Feedback):
    """Set sentiment and escalation fields from rating and comments."""
    text = feedback.comments.lower()
    positive = sum(1 for word in POSITIVE_KEYWORDS if word in text)
    negative = sum(1 for word in NEGATIVE_KEYWORDS if word in text)
    critical = any(word in text for word in CRITICAL_KEYWORDS)

    feedback.requires_escalation = False
    feedback.escalation_reason = ""

    if critical:
        feedback.sentiment = SentimentType.CRITICAL
        feedback.requires_escalation = True
        feedback.escalation_reason = "Critical keywords detected"
    elif feedback.rating <= 2:
        feedback.sentiment = SentimentType.NEGATIVE
        if feedback.rating == 1:
            feedback.requires_escalation = True
            feedback.escalation_reason = "1-star rating"
    elif feedback.rating >= 4 or positive > negative:
        feedback.sentiment = SentimentType.POSITIVE
    else:
        feedback.sentiment = SentimentType.NEUTRAL


def urgency(feedback: Feedback) -> tuple:
    """Queue priority: lower rating first, then more severe sentiment."""
    return -feedback.rating, int(feedback.sentiment)


class FeedbackStore(EntityStore[Feedback]):
    """Handles attendee feedback and keeps unresolved escalations queued."""

    MAGIC = b"FDBK"

    def __init__(self, file_path: str):
        self.urgent_queue = PriorityQueue()
        super().__init__(file_path)

    def load_entities(self):
        super().load_entities()
        self.urgent_queue.clear()
        for feedback in self.entities:
            analyze_sentiment(feedback)
            self._queue_if_urgent(feedback)

    def _queue_if_urgent(self, feedback: Feedback):
        if feedback.requires_escalation and not feedback.resolved:
            self.urgent_queue.enqueue(feedback, urgency(feedback))

    def create_feedback(self, concert_id: int, attendee_id: int, rating: int,
                        comments: str,
                        category: FeedbackCategory = FeedbackCategory.GENERAL
                        ) -> Optional[Feedback]:
        """
        Record feedback and analyse it. Returns None if it could not be saved.
        Raises ValueError if the rating is outside 1..5.
        """
        if rating < 1 or rating > 5:
            raise ValueError("Rating must be between 1 and 5")

        feedback = Feedback(
            feedback_id=self.generate_new_id(),
            concert_id=concert_id,
            attendee_id=attendee_id,
            rating=rating,
            comments=comments,
            category=category
        )
        analyze_sentiment(feedback)
        if not self.add(feedback):
            return None
        self._queue_if_urgent(feedback)

        if feedback.requires_escalation:
            logger.warning("feedback_escalated", feedback_id=feedback.feedback_id,
                           concert_id=concert_id, reason=feedback.escalation_reason)
        return feedback

    def get_feedback_by_id(self, feedback_id: int) -> Optional[Feedback]:
        return self.get_by_id(feedback_id)

    def get_feedback_for_event(self, concert_id: int) -> List[Feedback]:
        return self.find_by_predicate(lambda f: f.concert_id == concert_id)

    def get_event_average_rating(self, concert_id: int) -> float:
        """Mean rating of a concert, 0.0 when it has no feedback."""
        ratings = [f.rating for f in self.get_feedback_for_event(concert_id)]
        return sum(ratings) / len(ratings) if ratings else 0.0

    def get_average_ratings(self) -> Dict[int, float]:
        """Mean rating per concert id."""
        totals: Dict[int, List[int]] = {}
        for feedback in self.entities:
            totals.setdefault(feedback.concert_id, []).append(feedback.rating)
        return {cid: sum(r) / len(r) for cid, r in totals.items()}

    def get_urgent_feedback(self) -> List[Feedback]:
        """Unresolved escalations, most urgent first."""
        return self.urgent_queue.items()

    def get_low_rated_events(self) -> List[int]:
        """Ids of concerts averaging below 2.5 stars."""
        return sorted(cid for cid, avg in self.get_average_ratings().items()
                      if avg < LOW_RATING_THRESHOLD)

    def generate_sentiment_report(self, concert_id: int) -> str:
        feedback = self.get_feedback_for_event(concert_id)
        if not feedback:
            return f"No feedback available for event {concert_id}"

        counts = Counter(f.sentiment for f in feedback)
        total = len(feedback)
        average = self.get_event_average_rating(concert_id)

        lines = [
            f"=== Sentiment Analysis Report for Event {concert_id} ===",
            f"Total Feedback: {total}",
            f"Average Rating: {average:.2f}/5.0",
            "Sentiment Breakdown:",
        ]
        for sentiment in SentimentType:
            count = counts[sentiment]
            label = sentiment.name.title() + ":"
            lines.append(f"  {label:<9} {count} ({count * 100 // total}%)")

        if average < LOW_RATING_THRESHOLD:
            lines.append("")
            lines.append("WARNING: Event flagged for low rating (<2.5)")

        return "\n".join(lines) + "\n"

    def resolve_urgent_feedback(self, feedback_id: int) -> bool:
        """Mark an escalated feedback as handled and take it off the queue."""
        feedback = self.get_by_id(feedback_id)
        if not feedback or not feedback.requires_escalation or feedback.resolved:
            return False

        feedback.resolved = True
        self.urgent_queue.remove(feedback)
        logger.info("feedback_resolved", feedback_id=feedback_id)
        return self.save_entities()

    def delete_feedback(self, feedback_id: int) -> bool:
        feedback = self.get_by_id(feedback_id)
        if feedback:
            self.urgent_queue.remove(feedback)
        return self.delete_entity(feedback_id)

    def get_entity_id(self, entity: Feedback) -> int:
        return entity.feedback_id

    def write_record(self, writer: BinaryWriter, entity: Feedback):
        writer.write_int(entity.feedback_id)
        writer.write_int(entity.concert_id)
        writer.write_int(entity.attendee_id)
        writer.write_int(entity.rating)
        writer.write_string(entity.comments)
        writer.write_string(entity.submitted_at)
        writer.write_enum(entity.category)
        writer.write_bool(entity.resolved)

    def read_record(self, reader: BinaryReader) -> Feedback:
        feedback = Feedback(
            feedback_id=reader.read_int(),
            concert_id=reader.read_int(),
            attendee_id=reader.read_int(),
            rating=reader.read_int(),
            comments=reader.read_string()
        )
        feedback.submitted_at = reader.read_string()
        feedback.category = reader.read_enum(FeedbackCategory)
        feedback.resolved = reader.read_bool()
        return feedback
