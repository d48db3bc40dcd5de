# bookverse/scoring/feed_ranking.py
"""
Feed ranking.

Each post gets an additive score built from bounded signals:

- recency     exponential decay on the age of the post
- social      fixed bonus when the author is a friend of the viewer
- similarity  Jaccard overlap between viewer and author favourite genres
- relevance   fixed bonus when the post genre is one of the viewer's favourites
- engagement  logarithmic in likes and comments, capped
- self        small bonus on the viewer's own posts

Without both a viewer profile and a friend list only recency and engagement
count. Ranking never raises on partial data.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from bookverse.models.post import Post
from bookverse.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingWeights:
    friend_bonus: float = 50.0
    similarity_weight: float = 30.0
    genre_match_bonus: float = 20.0
    engagement_cap: float = 15.0
    engagement_scale: float = 3.0
    recency_weight: float = 10.0
    recency_half_life_hours: float = 120.0
    self_bonus: float = 5.0

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RankingWeights":
        """Build weights from app config keys such as FEED_FRIEND_BONUS."""
        overrides = {}
        for name in (f.name for f in fields(cls)):
            key = f"FEED_{name.upper()}"
            if config.get(key) is not None:
                overrides[name] = float(config[key])
        return replace(DEFAULT_WEIGHTS, **overrides)


DEFAULT_WEIGHTS = RankingWeights()

GENRE_KEYWORDS: Dict[str, Sequence[str]] = {
    'Fantasy': ('fantasy', 'magic', 'wizard', 'dragon', 'quest', 'kingdom', 'enchanted'),
    'Science Fiction': ('sci-fi', 'science fiction', 'space', 'future', 'robot', 'alien', 'dystopian'),
    'Mystery': ('mystery', 'detective', 'crime', 'murder', 'investigation', 'thriller'),
    'Romance': ('romance', 'love', 'romantic', 'relationship', 'dating', 'wedding'),
    'Thriller': ('thriller', 'suspense', 'action', 'adventure', 'danger', 'chase'),
    'Horror': ('horror', 'scary', 'frightening', 'terror', 'ghost', 'zombie', 'haunted'),
    'Historical Fiction': ('historical', 'history', 'ancient', 'war', 'medieval', 'victorian'),
    'Non-Fiction': ('non-fiction', 'biography', 'memoir', 'true story', 'autobiography'),
    'Young Adult': ('young adult', 'teen', 'coming of age', 'high school'),
    'Literary Fiction': ('literary', 'classic', 'award-winning', 'bestseller'),
}


@dataclass
class ViewerProfile:
    uid: Optional[str] = None
    favorite_genres: Sequence[str] = ()

    @classmethod
    def from_document(cls, data: Optional[Mapping[str, Any]]) -> Optional["ViewerProfile"]:
        if not data:
            return None
        return cls(uid=data.get("uid"), favorite_genres=list(data.get("favorite_genres") or []))


@dataclass
class RankedPost:
    post: Post
    score: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self.post)
        data["score"] = round(self.score, 4)
        return data


def _normalize_genres(genres: Optional[Iterable[str]]) -> set:
    return {g.strip().lower() for g in (genres or []) if isinstance(g, str) and g.strip()}


def genre_similarity(user_genres: Optional[Iterable[str]], other_genres: Optional[Iterable[str]]) -> float:
    """Jaccard coefficient of two genre lists, case-insensitive."""
    mine = _normalize_genres(user_genres)
    theirs = _normalize_genres(other_genres)
    if not mine or not theirs:
        return 0.0
    return len(mine & theirs) / len(mine | theirs)


def extract_genre(post: Post) -> Optional[str]:
    """The explicit genre, or the first genre whose keywords appear in the post."""
    if post.genre:
        return post.genre
    text = " ".join(filter(None, [post.content, post.book_title, post.book_author])).lower()
    for genre, keywords in GENRE_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return genre
    return None


def engagement_score(post: Post, weights: RankingWeights = DEFAULT_WEIGHTS) -> float:
    # comments signal deeper engagement than likes
    raw = 2 * max(post.likes, 0) + 3 * max(post.comments, 0)
    return min(weights.engagement_cap, weights.engagement_scale * math.log1p(raw))


def recency_score(created_at: Any, now: datetime, weights: RankingWeights = DEFAULT_WEIGHTS) -> float:
    posted = DateTimeUtils.coerce_datetime(created_at)
    if posted is None:
        return 0.0
    hours = max(DateTimeUtils.hours_between(posted, now), 0.0)
    return weights.recency_weight * 0.5 ** (hours / weights.recency_half_life_hours)


def score_post(
    post: Post,
    now: datetime,
    viewer: Optional[ViewerProfile] = None,
    friend_ids: Optional[Iterable[str]] = None,
    weights: RankingWeights = DEFAULT_WEIGHTS,
    author_genres: Optional[Mapping[str, Sequence[str]]] = None,
) -> float:
    score = recency_score(post.created_at, now, weights) + engagement_score(post, weights)

    # personal signals need both the viewer profile and the friend list
    if viewer is None or friend_ids is None:
        return score

    if post.user_id in set(friend_ids):
        score += weights.friend_bonus

    viewer_genres = _normalize_genres(viewer.favorite_genres)
    if viewer_genres:
        if author_genres and post.user_id in author_genres:
            score += genre_similarity(viewer.favorite_genres, author_genres[post.user_id]) * weights.similarity_weight

        genre = extract_genre(post)
        if genre and genre.strip().lower() in viewer_genres:
            score += weights.genre_match_bonus

    if viewer.uid and post.user_id == viewer.uid:
        score += weights.self_bonus

    return score


def _as_post(item: Any) -> Post:
    if isinstance(item, Post):
        return item
    return Post.from_document(item)


def rank_posts(
    posts: Optional[Iterable[Any]],
    viewer: Optional[ViewerProfile] = None,
    friend_ids: Optional[Iterable[str]] = None,
    weights: RankingWeights = DEFAULT_WEIGHTS,
    now: Optional[datetime] = None,
    author_genres: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[RankedPost]:
    """
    Score posts for one viewer and sort them.

    Order: score desc, then created_at desc (newest first), then post_id, so
    the same inputs always give the same order.
    """
    now = now or DateTimeUtils.now()
    friends = set(friend_ids) if friend_ids is not None else None

    ranked = []
    for item in posts or []:
        try:
            post = _as_post(item)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable post {item!r}: {e}")
            continue
        try:
            score = score_post(post, now, viewer, friends, weights, author_genres)
        except (TypeError, ValueError) as e:
            logger.warning(f"Falling back to zero score for post {post.post_id}: {e}")
            score = 0.0
        ranked.append(RankedPost(post=post, score=score))

    def sort_key(entry: RankedPost):
        posted = DateTimeUtils.coerce_datetime(entry.post.created_at)
        posted_ms = DateTimeUtils.to_timestamp_ms(posted) if posted else float("-inf")
        return (-entry.score, -posted_ms, entry.post.post_id or "")

    return sorted(ranked, key=sort_key)
