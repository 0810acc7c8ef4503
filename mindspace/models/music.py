from datetime import datetime
from typing import Optional

from pydantic import Field

from mindspace.models.chat import FirestoreModel, utcnow


class MusicRecommendation(FirestoreModel):
    title: str
    artist: str
    mood: str
    youtube_id: str
    description: Optional[str] = None
    timestamp: Optional[datetime] = None


class MusicPreference(FirestoreModel):
    mood: str
    youtube_id: str
    timestamp: datetime = Field(default_factory=utcnow)


class MusicPreferenceRequest(FirestoreModel):
    mood: str
    youtube_id: str


class YouTubeVideo(FirestoreModel):
    id: str
    title: str
    thumbnail_url: str
    channel_title: str
    duration: str
    video_url: str
