from typing import List, Optional

from fastapi import APIRouter, Depends

from mindspace.config import config
from mindspace.dependencies import get_current_user_id, get_mood_repository
from mindspace.models.mood import MoodHistoryEntry, MoodRequest, WellnessScore
from mindspace.services.mood_service import MoodRepository
from mindspace.utils.logger import logger

router = APIRouter(prefix="/mood")


@router.post("", status_code=201)
async def save_mood(
    request: MoodRequest,
    user_id: str = Depends(get_current_user_id),
    repository: MoodRepository = Depends(get_mood_repository),
):
    mood_id = repository.save_mood(user_id, request.mood_score, request.sentiment, request.topics)
    return {"id": mood_id}


@router.get("/history", response_model=List[MoodHistoryEntry])
async def mood_history(
    limit: int = 10,
    user_id: str = Depends(get_current_user_id),
    repository: MoodRepository = Depends(get_mood_repository),
):
    return repository.get_mood_history(user_id, limit)


@router.get("/current", response_model=Optional[MoodHistoryEntry])
async def current_mood(
    user_id: str = Depends(get_current_user_id),
    repository: MoodRepository = Depends(get_mood_repository),
):
    return repository.get_current_mood(user_id)


@router.get("/wellness", response_model=WellnessScore)
async def wellness_score(
    user_id: str = Depends(get_current_user_id),
    repository: MoodRepository = Depends(get_mood_repository),
):
    window = config.get("wellness", {}).get("window", 7)
    logger.info(f"📡 Wellness score requested by user {user_id}")
    return repository.get_wellness_score(user_id, window)
