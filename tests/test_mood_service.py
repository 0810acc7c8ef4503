import pytest

from mindspace.errors import ValidationError
from mindspace.models.mood import MoodEntry
from mindspace.services.mood_service import MoodRepository, aggregate_wellness

USER = "user-123"


@pytest.fixture
def moods(fake_db, clock):
    return MoodRepository(fake_db)


def entry(score, topics=()):
    return MoodEntry(mood_score=score, sentiment="neutral", topics=list(topics))


def test_anxiety_percentage_over_seven_entries():
    entries = [entry(5, ["anxiety"])] * 3 + [entry(5)] * 4
    score = aggregate_wellness(entries)
    assert score.anxiety == 43
    assert score.sleep == 0
    assert score.energy == 0


def test_mood_and_overall_are_scaled_mean():
    score = aggregate_wellness([entry(7), entry(8), entry(6, ["sleep", "energy"])])
    assert score.mood == 70
    assert score.overall == 70
    assert score.sleep == 33
    assert score.energy == 33


def test_rounding_is_half_up():
    # mean 6.25 -> 62.5 -> 63
    score = aggregate_wellness([entry(6), entry(6.5)] * 2)
    assert score.mood == 63


def test_no_entries_gives_zero_score():
    score = aggregate_wellness([])
    assert score.model_dump() == {"overall": 0, "sleep": 0, "anxiety": 0, "mood": 0, "energy": 0}


def test_wellness_uses_seven_most_recent_entries(moods):
    for _ in range(5):
        moods.save_mood(USER, 2, "low", ["sleep"])
    for _ in range(3):
        moods.save_mood(USER, 8, "good", ["anxiety"])
    for _ in range(4):
        moods.save_mood(USER, 8, "good", [])

    score = moods.get_wellness_score(USER)
    assert score.anxiety == 43
    assert score.sleep == 0
    assert score.mood == 80


def test_history_is_newest_first(moods):
    moods.save_mood(USER, 3, "sad", [])
    moods.save_mood(USER, 9, "happy", [])

    history = moods.get_mood_history(USER)
    assert [h.sentiment for h in history] == ["happy", "sad"]
    assert moods.get_current_mood(USER).mood_score == 9


def test_current_mood_none_without_entries(moods):
    assert moods.get_current_mood(USER) is None


def test_sentiment_is_stripped(moods):
    moods.save_mood(USER, 5, "  calm  ", [])
    assert moods.get_current_mood(USER).sentiment == "calm"


@pytest.mark.parametrize("score", [-1, 10.5, "7", None, True])
def test_invalid_mood_score_rejected(moods, score):
    with pytest.raises(ValidationError):
        moods.save_mood(USER, score, "ok", [])


@pytest.mark.parametrize(
    "user_id, sentiment, topics",
    [("", "ok", []), (USER, "   ", []), (USER, "ok", "anxiety")],
)
def test_invalid_mood_fields_rejected(moods, user_id, sentiment, topics):
    with pytest.raises(ValidationError):
        moods.save_mood(user_id, 5, sentiment, topics)
