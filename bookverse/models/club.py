# bookverse/models/club.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Book:
    """Document structure of the Firestore 'books' collection."""
    book_id: str
    title: str
    author: Optional[str] = None
    pdf_url: Optional[str] = None
    cover_url: Optional[str] = None
    publish_year: Optional[int] = None
    page_count: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Club:
    """Document structure of the Firestore 'clubs' collection."""
    club_id: str
    name: str
    created_by: str
    created_by_display_name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    book_id: Optional[str] = None
    member_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ClubMember:
    """
    Document structure of 'club_members'.
    The document id is f"{club_id}_{user_id}" so membership checks are point reads.
    """
    club_id: str
    user_id: str
    role: str = "member"  # 'owner' | 'member'
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ClubPost:
    """Document structure of 'clubs/{club_id}/posts'."""
    post_id: str
    club_id: str
    body: str
    author_id: str
    author_name: str
    page_number: Optional[int] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
