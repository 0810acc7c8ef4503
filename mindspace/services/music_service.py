from typing import List

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from mindspace.errors import ValidationError
from mindspace.models.chat import utcnow
from mindspace.models.music import MusicPreference, MusicRecommendation
from mindspace.utils.logger import logger

MUSIC_COLLECTION = "music_recommendations"

# Records written to music_recommendations by scripts/init_music_recommendations.py
DEFAULT_MUSIC_RECOMMENDATIONS: List[MusicRecommendation] = [
    MusicRecommendation(
        title="Weightless",
        artist="Marconi Union",
        mood="Anxious",
        youtube_id="UfcAVejslrU",
        description="Scientifically proven to reduce anxiety",
    ),
    MusicRecommendation(
        title="Claire de Lune",
        artist="Debussy",
        mood="Calm",
        youtube_id="CvFH_6DNRCY",
        description="Classical piece for relaxation",
    ),
    MusicRecommendation(
        title="Happy",
        artist="Pharrell Williams",
        mood="Happy",
        youtube_id="ZbZSe6N_BXs",
        description="Upbeat and positive",
    ),
    MusicRecommendation(
        title="Someone Like You",
        artist="Adele",
        mood="Sad",
        youtube_id="hLQl3WQQoQ0",
        description="Emotional and cathartic",
    ),
    MusicRecommendation(
        title="Breathe Me",
        artist="Sia",
        mood="Neutral",
        youtube_id="GxBSyx85Kp8",
        description="Balanced and introspective",
    ),
]


class MusicRepository:
    """Shared music recommendations plus per-user listening preferences."""

    def __init__(self, db: firestore.Client):
        self.db = db

    def _preferences_ref(self, user_id: str):
        return self.db.collection("users").document(user_id).collection("music_preferences")

    def get_music_recommendations(self, mood: str, limit: int = 10) -> List[MusicRecommendation]:
        query = (
            self.db.collection(MUSIC_COLLECTION)
            .where(filter=FieldFilter("mood", "==", mood))
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [MusicRecommendation.model_validate(doc.to_dict()) for doc in query.stream()]

    def save_music_preference(self, user_id: str, mood: str, youtube_id: str) -> str:
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        if not youtube_id:
            raise ValidationError("YouTube ID is required", field="youtube_id")
        preference = MusicPreference(mood=mood, youtube_id=youtube_id, timestamp=utcnow())
        _, doc_ref = self._preferences_ref(user_id).add(preference.to_document())
        logger.info(f"✅ Saved music preference {youtube_id} ({mood}) for user {user_id}")
        return doc_ref.id

    def get_user_music_preferences(self, user_id: str, limit: int = 10) -> List[MusicPreference]:
        if not user_id:
            raise ValidationError("User ID is required", field="user_id")
        query = (
            self._preferences_ref(user_id)
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [MusicPreference.model_validate(doc.to_dict()) for doc in query.stream()]

    def seed_music_recommendations(self) -> int:
        """Add the default records. Running it twice duplicates them."""
        music_ref = self.db.collection(MUSIC_COLLECTION)
        added = 0
        for recommendation in DEFAULT_MUSIC_RECOMMENDATIONS:
            document = recommendation.model_copy(update={"timestamp": utcnow()}).to_document()
            music_ref.add(document)
            logger.info(f"Added recommendation: {recommendation.title}")
            added += 1
        logger.info("✅ Successfully initialized music recommendations")
        return added
