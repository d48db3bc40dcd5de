# bookverse/models/comment.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional


class Sentiment(Enum):
    """Label attached to a single comment by the AI classifier."""
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    ANALYSIS_ERROR = "AnalysisError"

    @classmethod
    def parse(cls, value: Any) -> "Sentiment":
        """Read a stored label. Anything missing or unknown is ANALYSIS_ERROR."""
        if isinstance(value, Sentiment):
            return value
        if isinstance(value, str):
            normalized = value.strip().replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return cls.ANALYSIS_ERROR


@dataclass
class Comment:
    """
    Document structure of 'books/{book_id}/comments'.
    """
    comment_id: str
    book_id: str
    page: int
    text: str
    user_id: str
    user_display_name: Optional[str] = None
    like_count: int = 0
    liked_by: List[str] = field(default_factory=list)
    sentiment: Sentiment = Sentiment.ANALYSIS_ERROR
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict:
        return {
            "comment_id": self.comment_id,
            "book_id": self.book_id,
            "page": self.page,
            "text": self.text,
            "user_id": self.user_id,
            "user_display_name": self.user_display_name,
            "like_count": self.like_count,
            "liked_by": list(self.liked_by),
            "sentiment": self.sentiment.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_document(cls, data: dict) -> "Comment":
        liked_by = list(dict.fromkeys(data.get("liked_by") or []))
        return cls(
            comment_id=data.get("comment_id", ""),
            book_id=data.get("book_id", ""),
            page=int(data.get("page") or 0),
            text=data.get("text", ""),
            user_id=data.get("user_id", ""),
            user_display_name=data.get("user_display_name"),
            like_count=int(data.get("like_count") or 0),
            liked_by=liked_by,
            sentiment=Sentiment.parse(data.get("sentiment")),
            created_at=data.get("created_at") or datetime.now(timezone.utc),
        )


@dataclass
class PostComment:
    """Document structure of 'posts/{post_id}/comments'."""
    comment_id: str
    post_id: str
    content: str
    user_id: str
    user_display_name: str
    user_photo_url: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
