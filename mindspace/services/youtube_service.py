import asyncio
import re
from typing import Dict, List, Optional

import httpx
from cachetools import TTLCache
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from mindspace.models.music import YouTubeVideo
from mindspace.utils.logger import logger

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
MUSIC_CATEGORY_ID = "10"
RESULTS_PER_QUERY = 5

# Shown whenever the API key is missing or the search yields nothing
DEFAULT_VIDEOS: List[YouTubeVideo] = [
    YouTubeVideo(
        id="jfKfPfyJRdk",
        title="lofi hip hop radio 📚 - beats to relax/study to",
        thumbnail_url="https://i.ytimg.com/vi/jfKfPfyJRdk/hqdefault.jpg",
        channel_title="Lofi Girl",
        duration="0:00",
        video_url="https://www.youtube.com/watch?v=jfKfPfyJRdk",
    ),
    YouTubeVideo(
        id="rUxyA5a0Irk",
        title="Peaceful Piano Radio - 24/7 Live Piano Music",
        thumbnail_url="https://i.ytimg.com/vi/rUxyA5a0Irk/hqdefault.jpg",
        channel_title="Peaceful Piano",
        duration="0:00",
        video_url="https://www.youtube.com/watch?v=rUxyA5a0Irk",
    ),
    YouTubeVideo(
        id="DWcJFNfaw9c",
        title="Relaxing Music for Stress Relief - Soothing Nature Sounds",
        thumbnail_url="https://i.ytimg.com/vi/DWcJFNfaw9c/hqdefault.jpg",
        channel_title="Relaxing Music",
        duration="0:00",
        video_url="https://www.youtube.com/watch?v=DWcJFNfaw9c",
    ),
    YouTubeVideo(
        id="1ZYbU82GVz4",
        title="Meditation Music - Deep Relaxation",
        thumbnail_url="https://i.ytimg.com/vi/1ZYbU82GVz4/hqdefault.jpg",
        channel_title="Meditation Music",
        duration="0:00",
        video_url="https://www.youtube.com/watch?v=1ZYbU82GVz4",
    ),
    YouTubeVideo(
        id="n61ULEU7CO0",
        title="Calming Music for Anxiety Relief",
        thumbnail_url="https://i.ytimg.com/vi/n61ULEU7CO0/hqdefault.jpg",
        channel_title="Calm Music",
        duration="0:00",
        video_url="https://www.youtube.com/watch?v=n61ULEU7CO0",
    ),
]

MOOD_QUERIES: Dict[str, List[str]] = {
    "Happy": ["uplifting music", "happy songs", "positive vibes music", "feel good music", "energetic music"],
    "Sad": ["calming music", "emotional healing music", "peaceful music", "relaxing music", "soothing music"],
    "Anxious": [
        "anxiety relief music",
        "calming meditation music",
        "stress relief music",
        "peaceful ambient music",
        "relaxing nature sounds",
    ],
    "Angry": ["calming music", "peaceful music", "relaxing music", "meditation music", "stress relief music"],
    "Neutral": ["background music", "ambient music", "chill music", "lo-fi music", "relaxing music"],
}

_DURATION_RE = re.compile(r"PT(\d+H)?(\d+M)?(\d+S)?")


def format_duration(duration: str) -> str:
    """ISO 8601 duration (PT#H#M#S) to M:SS, or H:MM:SS when hours are present."""
    match = _DURATION_RE.search(duration or "")
    if not match:
        return "0:00"
    hours, minutes, seconds = (group[:-1] if group else "" for group in match.groups())
    if hours:
        return f"{hours}:{minutes.zfill(2)}:{seconds.zfill(2)}"
    return f"{minutes or '0'}:{seconds.zfill(2)}"


def fallback_videos() -> List[YouTubeVideo]:
    return [video.model_copy() for video in DEFAULT_VIDEOS]


class YouTubeService:
    """Music video search against the YouTube Data API with retries and fallback."""

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        max_attempts: int = 3,
        backoff_base: float = 1.0,
        cache_ttl: int = 600,
    ):
        self.api_key = api_key
        self.http_client = http_client
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.cache = TTLCache(maxsize=128, ttl=cache_ttl)

    async def _get_json(self, client: httpx.AsyncClient, path: str, params: dict) -> dict:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base, max=10),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await client.get(path, params={**params, "key": self.api_key})
                response.raise_for_status()
                return response.json()

    async def _search_query(self, client: httpx.AsyncClient, search_query: str) -> List[YouTubeVideo]:
        try:
            search_data = await self._get_json(client, "/search", {
                "part": "snippet",
                "q": search_query,
                "type": "video",
                "videoCategoryId": MUSIC_CATEGORY_ID,
                "maxResults": RESULTS_PER_QUERY,
            })
            video_ids = [
                item["id"]["videoId"]
                for item in search_data.get("items", [])
                if item.get("id", {}).get("videoId")
            ]
            if not video_ids:
                return []

            video_data = await self._get_json(client, "/videos", {
                "part": "contentDetails,snippet",
                "id": ",".join(video_ids),
            })
            return [
                YouTubeVideo(
                    id=item["id"],
                    title=item["snippet"]["title"],
                    thumbnail_url=item["snippet"]["thumbnails"]["high"]["url"],
                    channel_title=item["snippet"]["channelTitle"],
                    duration=format_duration(item["contentDetails"]["duration"]),
                    video_url=f"https://www.youtube.com/watch?v={item['id']}",
                )
                for item in video_data.get("items", [])
            ]
        except Exception as e:
            logger.error(f"❌ Error fetching videos for query \"{search_query}\": {e}")
            return []

    async def _search_all(self, client: httpx.AsyncClient, queries: List[str]) -> List[YouTubeVideo]:
        results = await asyncio.gather(*(self._search_query(client, q) for q in queries))
        unique: Dict[str, YouTubeVideo] = {}
        for videos in results:
            for video in videos:
                unique.setdefault(video.id, video)
        return list(unique.values())

    async def search_music(self, query: str) -> List[YouTubeVideo]:
        """
        Search music videos for a mood name or free-text query.
        Always returns a non-empty list: the defaults stand in on failure.
        """
        if not self.api_key:
            logger.error("❌ YouTube API key is not configured")
            return fallback_videos()
        if query in self.cache:
            logger.debug(f"Video search cache hit for '{query}'")
            return list(self.cache[query])

        queries = MOOD_QUERIES.get(query, [query])
        try:
            if self.http_client is not None:
                videos = await self._search_all(self.http_client, queries)
            else:
                async with httpx.AsyncClient(base_url=YOUTUBE_API_URL, timeout=10.0) as client:
                    videos = await self._search_all(client, queries)
        except Exception as e:
            logger.error(f"❌ Error fetching YouTube music: {e}", exc_info=True)
            return fallback_videos()

        if not videos:
            logger.warning(f"⚠️ No videos found for '{query}', returning default videos")
            return fallback_videos()

        self.cache[query] = videos
        logger.info(f"✅ Found {len(videos)} videos for '{query}'")
        return list(videos)
