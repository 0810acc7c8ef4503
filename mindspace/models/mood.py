from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from mindspace.models.chat import FirestoreModel, utcnow

# Topics tracked by the wellness score
WELLNESS_TOPICS = ("anxiety", "sleep", "energy")


class MoodEntry(FirestoreModel):
    """One mood observation under users/{uid}/mental_metrics."""
    mood_score: float = Field(ge=0, le=10)
    sentiment: str = Field(min_length=1)
    topics: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class MoodHistoryEntry(MoodEntry):
    id: str


class MoodRequest(FirestoreModel):
    mood_score: float = Field(ge=0, le=10)
    sentiment: str
    topics: List[str] = Field(default_factory=list)


class WellnessScore(BaseModel):
    """Rolled-up score over the most recent mood entries. Never persisted."""
    overall: int = 0
    sleep: int = 0
    anxiety: int = 0
    mood: int = 0
    energy: int = 0
