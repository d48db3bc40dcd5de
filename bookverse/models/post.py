# bookverse/models/post.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, List


def _counter(value: Any) -> int:
    """Stored counters that are not numbers read as 0."""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class Post:
    """
    Document structure of the Firestore 'posts' collection.
    `likes` must always equal len(liked_by); `comments` is bumped by the
    post-comment writer in the same transaction as the comment insert.
    """
    post_id: str
    user_id: str
    user_display_name: str
    content: str
    user_photo_url: Optional[str] = None
    book_title: Optional[str] = None
    book_author: Optional[str] = None
    genre: Optional[str] = None
    likes: int = 0
    liked_by: List[str] = field(default_factory=list)
    comments: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_document(cls, data: dict) -> "Post":
        return cls(
            post_id=data.get("post_id", ""),
            user_id=data.get("user_id", ""),
            user_display_name=data.get("user_display_name") or "Anonymous",
            content=data.get("content", ""),
            user_photo_url=data.get("user_photo_url"),
            book_title=data.get("book_title"),
            book_author=data.get("book_author"),
            genre=data.get("genre"),
            likes=_counter(data.get("likes")),
            liked_by=list(data.get("liked_by") or []),
            comments=_counter(data.get("comments")),
            created_at=data.get("created_at"),
        )
