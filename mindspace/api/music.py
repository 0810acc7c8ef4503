from typing import List

from fastapi import APIRouter, Depends

from mindspace.dependencies import get_current_user_id, get_music_repository, get_youtube_service
from mindspace.models.music import (
    MusicPreference,
    MusicPreferenceRequest,
    MusicRecommendation,
    YouTubeVideo,
)
from mindspace.services.music_service import MusicRepository
from mindspace.services.youtube_service import YouTubeService
from mindspace.utils.logger import logger

router = APIRouter(prefix="/music")


@router.get("/recommendations/{mood}", response_model=List[MusicRecommendation])
async def music_recommendations(
    mood: str,
    limit: int = 10,
    repository: MusicRepository = Depends(get_music_repository),
):
    return repository.get_music_recommendations(mood, limit)


@router.get("/videos", response_model=List[YouTubeVideo])
async def search_videos(q: str, youtube: YouTubeService = Depends(get_youtube_service)):
    """Music videos for a mood name (Happy, Sad, Anxious, Angry, Neutral) or free text."""
    logger.info(f"📡 Received video search request: {q}")
    return await youtube.search_music(q)


@router.post("/preferences", status_code=201)
async def save_preference(
    request: MusicPreferenceRequest,
    user_id: str = Depends(get_current_user_id),
    repository: MusicRepository = Depends(get_music_repository),
):
    preference_id = repository.save_music_preference(user_id, request.mood, request.youtube_id)
    return {"id": preference_id}


@router.get("/preferences", response_model=List[MusicPreference])
async def list_preferences(
    limit: int = 10,
    user_id: str = Depends(get_current_user_id),
    repository: MusicRepository = Depends(get_music_repository),
):
    return repository.get_user_music_preferences(user_id, limit)
