"""Dependency injection providers for FastAPI."""
from typing import Optional

from fastapi import Depends
from google.cloud import firestore

from mindspace.config import GEMINI_API_KEY, YOUTUBE_API_KEY, config
from mindspace.services.conversation_store import ConversationRepository
from mindspace.services.firebase_auth import verify_token
from mindspace.services.gemini_service import GeminiService
from mindspace.services.mood_service import MoodRepository, MoodTracker
from mindspace.services.music_service import MusicRepository
from mindspace.services.youtube_service import YouTubeService

# Process-wide clients, created on first use so tests can override them
_firestore_client: Optional[firestore.Client] = None
_gemini_service: Optional[GeminiService] = None
_youtube_service: Optional[YouTubeService] = None


def get_firestore_client() -> firestore.Client:
    global _firestore_client
    if _firestore_client is None:
        _firestore_client = firestore.Client()
    return _firestore_client


def get_gemini_service() -> GeminiService:
    global _gemini_service
    if _gemini_service is None:
        gemini_cfg = config.get("gemini", {})
        _gemini_service = GeminiService(
            api_key=GEMINI_API_KEY,
            model_name=gemini_cfg.get("model", "gemini-2.0-flash"),
            temperature=gemini_cfg.get("temperature", 0.7),
            max_output_tokens=gemini_cfg.get("max_output_tokens", 1024),
            history_window=gemini_cfg.get("history_window", 20),
        )
    return _gemini_service


def get_youtube_service() -> YouTubeService:
    global _youtube_service
    if _youtube_service is None:
        youtube_cfg = config.get("youtube", {})
        _youtube_service = YouTubeService(
            api_key=YOUTUBE_API_KEY,
            max_attempts=youtube_cfg.get("max_attempts", 3),
            backoff_base=youtube_cfg.get("backoff_base", 1.0),
            cache_ttl=youtube_cfg.get("cache_ttl", 600),
        )
    return _youtube_service


def get_conversation_repository(db=Depends(get_firestore_client)) -> ConversationRepository:
    return ConversationRepository(db)


def get_mood_repository(db=Depends(get_firestore_client)) -> MoodRepository:
    return MoodRepository(db)


def get_music_repository(db=Depends(get_firestore_client)) -> MusicRepository:
    return MusicRepository(db)


def get_mood_tracker(
    analyzer=Depends(get_gemini_service),
    repository: MoodRepository = Depends(get_mood_repository),
) -> MoodTracker:
    return MoodTracker(analyzer, repository)


def get_current_user_id(token_data: dict = Depends(verify_token)) -> str:
    """The Firebase uid of the caller."""
    return token_data["uid"]
