import httpx
import pytest

from mindspace.services.youtube_service import (
    DEFAULT_VIDEOS,
    MOOD_QUERIES,
    YOUTUBE_API_URL,
    YouTubeService,
    format_duration,
)


def video_item(video_id, duration="PT3M5S"):
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelTitle": "Calm Channel",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"}},
        },
        "contentDetails": {"duration": duration},
    }


def youtube_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=YOUTUBE_API_URL)


def service(handler, **kwargs):
    return YouTubeService(api_key="test-key", http_client=youtube_client(handler), backoff_base=0, **kwargs)


@pytest.mark.parametrize(
    "duration, expected",
    [
        ("PT3M5S", "3:05"),
        ("PT45S", "0:45"),
        ("PT10M", "10:00"),
        ("PT1H2M3S", "1:02:03"),
        ("PT2H", "2:00:00"),
        ("garbage", "0:00"),
    ],
)
def test_format_duration(duration, expected):
    assert format_duration(duration) == expected


@pytest.mark.asyncio
async def test_empty_api_key_returns_fallback():
    videos = await YouTubeService(api_key="").search_music("Happy")
    assert len(videos) == 5
    assert [v.id for v in videos] == [v.id for v in DEFAULT_VIDEOS]
    assert all(v.duration == "0:00" for v in videos)


@pytest.mark.asyncio
async def test_network_failure_returns_fallback():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        raise httpx.ConnectError("network down", request=request)

    videos = await service(handler).search_music("rainy day piano")
    assert [v.id for v in videos] == [v.id for v in DEFAULT_VIDEOS]
    assert all(v.duration == "0:00" for v in videos)
    # one query, three attempts
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_server_error_is_retried_then_succeeds():
    attempts = {"search": 0}

    def handler(request):
        if request.url.path.endswith("/search"):
            attempts["search"] += 1
            if attempts["search"] < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"items": [{"id": {"videoId": "abc"}}]})
        return httpx.Response(200, json={"items": [video_item("abc")]})

    videos = await service(handler).search_music("focus music")
    assert [v.id for v in videos] == ["abc"]
    assert attempts["search"] == 3


@pytest.mark.asyncio
async def test_empty_results_return_fallback():
    def handler(request):
        return httpx.Response(200, json={"items": []})

    videos = await service(handler).search_music("nothing matches this")
    assert len(videos) == 5
    assert all(v.duration == "0:00" for v in videos)


@pytest.mark.asyncio
async def test_mood_expands_to_queries_and_dedupes():
    queries = []

    def handler(request):
        if request.url.path.endswith("/search"):
            queries.append(request.url.params["q"])
            return httpx.Response(200, json={"items": [{"id": {"videoId": "same"}}, {"id": {"videoId": "other"}}]})
        ids = request.url.params["id"].split(",")
        return httpx.Response(200, json={"items": [video_item(i, "PT1H0M9S") for i in ids]})

    videos = await service(handler).search_music("Anxious")
    assert sorted(queries) == sorted(MOOD_QUERIES["Anxious"])
    assert [v.id for v in videos] == ["same", "other"]
    assert videos[0].duration == "1:00:09"
    assert videos[0].video_url == "https://www.youtube.com/watch?v=same"


@pytest.mark.asyncio
async def test_results_are_cached_per_query():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json={"items": [{"id": {"videoId": "abc"}}]})
        return httpx.Response(200, json={"items": [video_item("abc")]})

    youtube = service(handler)
    first = await youtube.search_music("lofi")
    second = await youtube.search_music("lofi")
    assert first == second
    assert len(calls) == 2
