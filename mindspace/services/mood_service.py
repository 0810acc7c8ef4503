import math
from typing import Iterable, List, Optional

from google.cloud import firestore

from mindspace.errors import ValidationError
from mindspace.models.chat import utcnow
from mindspace.models.mood import (
    WELLNESS_TOPICS,
    MoodEntry,
    MoodHistoryEntry,
    WellnessScore,
)
from mindspace.utils.logger import logger

WELLNESS_WINDOW = 7


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def aggregate_wellness(entries: Iterable[MoodEntry]) -> WellnessScore:
    """
    Roll recent mood entries up into a wellness score.

    Topic values are the percentage of entries tagged with that topic; mood
    and overall are the mean mood score scaled to 0-100.
    """
    entries = list(entries)
    count = len(entries) or 1
    mood_total = sum(entry.mood_score or 0 for entry in entries)
    topic_counts = {
        topic: sum(1 for entry in entries if topic in entry.topics)
        for topic in WELLNESS_TOPICS
    }
    mood = _round_half_up(mood_total / count * 10)
    return WellnessScore(
        overall=mood,
        mood=mood,
        anxiety=_round_half_up(topic_counts["anxiety"] / count * 100),
        sleep=_round_half_up(topic_counts["sleep"] / count * 100),
        energy=_round_half_up(topic_counts["energy"] / count * 100),
    )


class MoodRepository:
    """Mood entries under users/{uid}/mental_metrics."""

    def __init__(self, db: firestore.Client):
        self.db = db

    def _metrics_ref(self, user_id: str):
        return self.db.collection("users").document(user_id).collection("mental_metrics")

    def save_mood(self, user_id: str, mood_score, sentiment, topics) -> str:
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        if isinstance(mood_score, bool) or not isinstance(mood_score, (int, float)) \
                or not 0 <= mood_score <= 10:
            raise ValidationError("Mood score must be a number between 0 and 10", field="mood_score")
        if not isinstance(sentiment, str) or not sentiment.strip():
            raise ValidationError("Sentiment is required and must be a non-empty string", field="sentiment")
        if not isinstance(topics, (list, tuple)):
            raise ValidationError("Topics must be a list", field="topics")

        entry = MoodEntry(
            mood_score=mood_score,
            sentiment=sentiment.strip(),
            topics=list(topics),
            timestamp=utcnow(),
        )
        _, doc_ref = self._metrics_ref(user_id).add(entry.to_document())
        logger.info(f"✅ Mood data saved for user {user_id} with ID: {doc_ref.id}")
        return doc_ref.id

    def get_mood_history(self, user_id: str, limit: int = 10) -> List[MoodHistoryEntry]:
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        query = (
            self._metrics_ref(user_id)
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [
            MoodHistoryEntry.model_validate({"id": doc.id, **doc.to_dict()})
            for doc in query.stream()
        ]

    def get_current_mood(self, user_id: str) -> Optional[MoodHistoryEntry]:
        history = self.get_mood_history(user_id, limit=1)
        return history[0] if history else None

    def get_wellness_score(self, user_id: str, window: int = WELLNESS_WINDOW) -> WellnessScore:
        entries = self.get_mood_history(user_id, limit=window)
        logger.debug(f"Computing wellness score for {user_id} over {len(entries)} entries")
        return aggregate_wellness(entries)


class MoodTracker:
    """Estimates mood from chat text and records it as a MoodEntry."""

    def __init__(self, analyzer, repository: MoodRepository):
        self.analyzer = analyzer
        self.repository = repository

    async def track(self, user_id: str, message_text: str) -> Optional[str]:
        entry = await self.analyzer.analyze_mood(message_text)
        if entry is None:
            logger.warning(f"⚠️ No mood detected for user {user_id}")
            return None
        return self.repository.save_mood(user_id, entry.mood_score, entry.sentiment, entry.topics)
