# bookverse/models/user.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List


@dataclass
class UserProfile:
    """
    Document structure of the Firestore 'users' collection.
    The document id is the Firebase Auth uid.
    """
    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    favorite_genres: List[str] = field(default_factory=list)
    friends: List[str] = field(default_factory=list)
    reading_lists: List[str] = field(default_factory=list)
    following_count: int = 0
    followers_count: int = 0
    books_read: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ReadingProgress:
    """Document structure of 'users/{uid}/progress/{book_id}'."""
    current_page: int
    total_pages: int
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
