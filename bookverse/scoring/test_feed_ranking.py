# bookverse/scoring/test_feed_ranking.py
"""
Feed ranking tests.

Usage: python -m pytest bookverse/scoring/test_feed_ranking.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from bookverse.models.post import Post
from bookverse.scoring.feed_ranking import (
    DEFAULT_WEIGHTS,
    RankingWeights,
    ViewerProfile,
    engagement_score,
    extract_genre,
    genre_similarity,
    rank_posts,
    recency_score,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _post(post_id, user_id="author", hours_ago=1.0, likes=0, comments=0, genre=None, content="A quiet afternoon read."):
    return Post(
        post_id=post_id,
        user_id=user_id,
        user_display_name=user_id.title(),
        content=content,
        genre=genre,
        likes=likes,
        liked_by=[f"fan{i}" for i in range(likes)],
        comments=comments,
        created_at=NOW - timedelta(hours=hours_ago),
    )


def _ids(ranked):
    return [entry.post.post_id for entry in ranked]


@pytest.fixture
def viewer():
    return ViewerProfile(uid="viewer", favorite_genres=["Mystery", "Fantasy"])


def test_empty_feed():
    assert rank_posts([], now=NOW) == []
    assert rank_posts(None, now=NOW) == []


def test_newer_post_never_scores_lower(viewer):
    for hours in (0.5, 3, 30, 200, 2000):
        newer = _post("newer", hours_ago=hours)
        older = _post("older", hours_ago=hours + 1)
        ranked = {e.post.post_id: e.score for e in rank_posts([older, newer], viewer, {"author"}, now=NOW)}
        assert ranked["newer"] >= ranked["older"]


def test_recency_is_monotonic_and_bounded():
    scores = [recency_score(NOW - timedelta(hours=h), NOW) for h in (0, 1, 24, 168, 720, 10000)]
    assert scores == sorted(scores, reverse=True)
    assert scores[0] == pytest.approx(DEFAULT_WEIGHTS.recency_weight)
    assert all(0 <= s <= DEFAULT_WEIGHTS.recency_weight for s in scores)


def test_future_timestamps_are_treated_as_brand_new():
    assert recency_score(NOW + timedelta(hours=5), NOW) == pytest.approx(DEFAULT_WEIGHTS.recency_weight)


def test_missing_timestamp_scores_zero_recency():
    assert recency_score(None, NOW) == 0.0


def test_friend_post_scores_at_least_as_high(viewer):
    friend_post = _post("p-friend", user_id="friend")
    stranger_post = _post("p-stranger", user_id="stranger")

    ranked = rank_posts([stranger_post, friend_post], viewer, {"friend"}, now=NOW)

    assert _ids(ranked) == ["p-friend", "p-stranger"]
    assert ranked[0].score - ranked[1].score == pytest.approx(DEFAULT_WEIGHTS.friend_bonus)


def test_genre_match_uses_explicit_then_inferred_genre(viewer):
    explicit = _post("explicit", genre="mystery")
    inferred = _post("inferred", content="Finished a detective novel last night")
    unrelated = _post("plain")

    ranked = rank_posts([unrelated, inferred, explicit], viewer, set(), now=NOW)
    scores = {e.post.post_id: e.score for e in ranked}

    assert scores["explicit"] == pytest.approx(scores["plain"] + DEFAULT_WEIGHTS.genre_match_bonus)
    assert scores["inferred"] == pytest.approx(scores["plain"] + DEFAULT_WEIGHTS.genre_match_bonus)


def test_extract_genre_returns_none_without_keywords():
    assert extract_genre(_post("x", content="Lunch was nice")) is None
    assert extract_genre(_post("y", content="A dragon appeared")) == "Fantasy"


def test_engagement_is_sublinear_and_capped():
    small = engagement_score(_post("a", likes=1))
    medium = engagement_score(_post("b", likes=10))
    viral = engagement_score(_post("c", likes=100000, comments=50000))

    assert 0 < small < medium <= viral
    assert medium < 10 * small
    assert viral == DEFAULT_WEIGHTS.engagement_cap


def test_guest_ranking_uses_only_recency_and_engagement():
    popular_old = _post("popular", user_id="friend", hours_ago=48, likes=40, genre="Mystery")
    fresh = _post("fresh", user_id="friend", hours_ago=0, genre="Mystery")

    ranked = rank_posts([fresh, popular_old], viewer=None, friend_ids=None, now=NOW)

    for entry in ranked:
        expected = recency_score(entry.post.created_at, NOW) + engagement_score(entry.post)
        assert entry.score == pytest.approx(expected)


@pytest.mark.parametrize("has_viewer, friend_ids", [(False, {"friend"}), (True, None), (False, None)])
def test_missing_viewer_or_friends_falls_back_to_recency_and_engagement(viewer, has_viewer, friend_ids):
    friend_post = _post("f", user_id="friend", hours_ago=3, likes=2, genre="Mystery")
    own_post = _post("v", user_id="viewer", hours_ago=5, genre="Fantasy")

    ranked = rank_posts([friend_post, own_post], viewer if has_viewer else None, friend_ids, now=NOW)

    for entry in ranked:
        expected = recency_score(entry.post.created_at, NOW) + engagement_score(entry.post)
        assert entry.score == pytest.approx(expected)


def test_unreadable_counters_read_as_zero():
    docs = [
        {"post_id": "a", "user_id": "u", "content": "hi", "likes": "many", "comments": None, "created_at": NOW},
        {"post_id": "b", "user_id": "u", "content": "hi", "likes": 1, "comments": "lots", "created_at": NOW},
    ]
    ranked = rank_posts(docs, now=NOW)

    assert sorted(_ids(ranked)) == ["a", "b"]
    assert {e.post.post_id: e.post.likes for e in ranked} == {"a": 0, "b": 1}


def test_unreadable_items_are_skipped():
    ranked = rank_posts([None, 42, {"post_id": "ok", "user_id": "u", "content": "hi", "created_at": NOW}], now=NOW)
    assert _ids(ranked) == ["ok"]


def test_missing_post_id_does_not_break_tie_ordering():
    docs = [
        {"post_id": None, "user_id": "u", "content": "hi"},
        {"post_id": "a", "user_id": "u", "content": "hi"},
    ]
    ranked = rank_posts(docs, now=NOW)
    assert _ids(ranked) == [None, "a"]


def test_ranking_never_raises_on_odd_documents(viewer):
    docs = [
        {"post_id": "ok", "user_id": "u", "content": "hello", "created_at": NOW},
        {"post_id": "no-date", "user_id": "u", "content": "hello"},
        {"post_id": "bad-date", "user_id": "u", "content": "hello", "created_at": "yesterday-ish"},
    ]
    ranked = rank_posts(docs, viewer, ["u"], now=NOW)
    assert _ids(ranked)[0] == "ok"
    assert len(ranked) == 3


def test_ties_break_by_newest_first():
    # identical score: recency weight zeroed so only the tie-break differs
    weights = RankingWeights(recency_weight=0.0)
    older = _post("older", hours_ago=10)
    newer = _post("newer", hours_ago=2)

    ranked = rank_posts([older, newer], now=NOW, weights=weights)

    assert ranked[0].score == ranked[1].score
    assert _ids(ranked) == ["newer", "older"]


def test_rank_is_idempotent(viewer):
    posts = [
        _post("a", user_id="friend", hours_ago=30, likes=3),
        _post("b", hours_ago=1, genre="Fantasy"),
        _post("c", hours_ago=5, comments=12),
        _post("d", user_id="viewer", hours_ago=70),
        _post("e", hours_ago=5, comments=12),
    ]
    first = rank_posts(posts, viewer, {"friend"}, now=NOW)
    second = rank_posts([e.post for e in first], viewer, {"friend"}, now=NOW)
    reversed_input = rank_posts(list(reversed(posts)), viewer, {"friend"}, now=NOW)

    assert _ids(first) == _ids(second) == _ids(reversed_input)
    assert [e.score for e in first] == [e.score for e in second]


def test_author_similarity_bonus(viewer):
    kindred = _post("kindred", user_id="kindred")
    other = _post("other", user_id="other")
    author_genres = {"kindred": ["mystery", "FANTASY"], "other": ["Romance"]}

    scores = {e.post.post_id: e.score for e in rank_posts([kindred, other], viewer, set(), now=NOW, author_genres=author_genres)}

    assert scores["kindred"] - scores["other"] == pytest.approx(DEFAULT_WEIGHTS.similarity_weight)


def test_self_posts_get_small_boost(viewer):
    mine = _post("mine", user_id="viewer")
    theirs = _post("theirs", user_id="someone")
    scores = {e.post.post_id: e.score for e in rank_posts([mine, theirs], viewer, set(), now=NOW)}
    assert scores["mine"] - scores["theirs"] == pytest.approx(DEFAULT_WEIGHTS.self_bonus)


def test_genre_similarity():
    assert genre_similarity(["Mystery", "Fantasy"], ["mystery ", "Horror"]) == pytest.approx(1 / 3)
    assert genre_similarity([], ["Horror"]) == 0.0
    assert genre_similarity(None, None) == 0.0


def test_weights_from_config():
    weights = RankingWeights.from_config({"FEED_FRIEND_BONUS": "10", "FEED_RECENCY_HALF_LIFE_HOURS": 24, "OTHER": 1})
    assert weights.friend_bonus == 10.0
    assert weights.recency_half_life_hours == 24.0
    assert weights.genre_match_bonus == DEFAULT_WEIGHTS.genre_match_bonus
