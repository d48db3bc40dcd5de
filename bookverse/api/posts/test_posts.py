# bookverse/api/posts/test_posts.py
"""
Post, like and feed tests.

Usage: python -m pytest bookverse/api/posts/test_posts.py -v
"""

from datetime import timedelta

import pytest

from bookverse.api.posts.services import PostService
from bookverse.core.exceptions import NotFoundError
from bookverse.services.notification_service import NotificationService
from bookverse.utils.datetime_utils import DateTimeUtils


@pytest.fixture
def service(fake_db, seed_users):
    return PostService(notification_service=NotificationService())


def _seed_post(fake_db, post_id, user_id, hours_ago, **extra):
    data = {
        "post_id": post_id, "user_id": user_id, "user_display_name": user_id.title(),
        "content": "Reading on the train", "likes": 0, "liked_by": [], "comments": 0,
        "created_at": DateTimeUtils.now() - timedelta(hours=hours_ago),
    }
    data.update(extra)
    fake_db.seed(f"posts/{post_id}", data)


def test_create_post_snapshots_author(service, fake_db):
    post = service.create_post("alice", "Started Dracula tonight", book_title="Dracula", genre="Horror")

    stored = fake_db.read(f"posts/{post['post_id']}")
    assert stored["user_display_name"] == "Alice"
    assert stored["likes"] == 0 and stored["liked_by"] == [] and stored["comments"] == 0


def test_create_post_requires_known_author(service):
    with pytest.raises(NotFoundError):
        service.create_post("ghost", "hello")


def test_like_toggled_twice_restores_state(service, fake_db):
    _seed_post(fake_db, "p1", "bob", 1)

    assert service.toggle_post_like("alice", "p1") == {"is_liked": True, "likes": 1}
    liked = fake_db.read("posts/p1")
    assert liked["likes"] == len(liked["liked_by"]) == 1

    assert service.toggle_post_like("alice", "p1") == {"is_liked": False, "likes": 0}
    restored = fake_db.read("posts/p1")
    assert restored["likes"] == 0 and restored["liked_by"] == []


def test_like_counter_tracks_membership_across_users(service, fake_db):
    _seed_post(fake_db, "p1", "bob", 1)
    for uid in ("alice", "carol", "alice", "bob"):
        service.toggle_post_like(uid, "p1")

    stored = fake_db.read("posts/p1")
    assert sorted(stored["liked_by"]) == ["bob", "carol"]
    assert stored["likes"] == 2


def test_like_missing_post(service):
    with pytest.raises(NotFoundError):
        service.toggle_post_like("alice", "nope")


def test_like_notifies_author_once(service, fake_db):
    _seed_post(fake_db, "p1", "bob", 1)
    service.toggle_post_like("alice", "p1")
    service.toggle_post_like("alice", "p1")
    service.toggle_post_like("bob", "p1")

    notifications = [n for p, n in fake_db.docs.items() if p.startswith("notifications/")]
    assert [(n["recipient_id"], n["type"]) for n in notifications] == [("bob", "POST_LIKE")]


def test_comment_increments_counter(service, fake_db):
    _seed_post(fake_db, "p1", "bob", 1)

    service.add_comment("p1", "alice", "Great pick!")
    service.add_comment("p1", "carol", "Adding it to my list")

    assert fake_db.read("posts/p1")["comments"] == 2
    assert [c["content"] for c in service.get_comments("p1")] == ["Great pick!", "Adding it to my list"]


def test_comment_on_missing_post_writes_nothing(service, fake_db):
    with pytest.raises(NotFoundError):
        service.add_comment("nope", "alice", "hello")
    assert not [p for p in fake_db.docs if "/comments/" in p]


def test_feed_prefers_friends_and_genres(service, fake_db):
    fake_db.seed("users/alice", dict(fake_db.read("users/alice"), friends=["carol"]))
    _seed_post(fake_db, "stranger-new", "dave", 0)
    _seed_post(fake_db, "friend-old", "carol", 20)
    _seed_post(fake_db, "kindred", "bob", 2, genre="Mystery")

    feed = service.get_feed("alice")

    assert [p["post_id"] for p in feed] == ["friend-old", "kindred", "stranger-new"]
    assert all("score" in p for p in feed)


def test_anonymous_feed_is_newest_first_without_engagement(service, fake_db):
    _seed_post(fake_db, "old", "bob", 30)
    _seed_post(fake_db, "new", "carol", 1)

    feed = service.get_feed(None)

    assert [p["post_id"] for p in feed] == ["new", "old"]
    assert not any(p["is_liked"] for p in feed)


def test_feed_respects_fetch_limit(fake_db, seed_users):
    service = PostService(fetch_limit=2)
    for i in range(4):
        _seed_post(fake_db, f"p{i}", "bob", i)

    assert sorted(p["post_id"] for p in service.get_feed("alice")) == ["p0", "p1"]


def test_feed_marks_liked_posts(service, fake_db):
    _seed_post(fake_db, "p1", "bob", 1, likes=1, liked_by=["alice"])
    assert service.get_feed("alice")[0]["is_liked"] is True
