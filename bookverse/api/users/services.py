# bookverse/api/users/services.py
import logging
from dataclasses import asdict
from firebase_admin import firestore
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError
from bookverse.models.user import ReadingProgress
from bookverse.utils.datetime_utils import DateTimeUtils

MAX_BIO_LENGTH = 500
COUNTER_FIELDS = ('following_count', 'followers_count', 'books_read')
EDITABLE_FIELDS = ('display_name', 'photo_url', 'bio', 'favorite_genres')


def validate_profile(profile: Dict[str, Any]) -> None:
    """Raises ValueError for values a profile document must never hold."""
    email = profile.get('email')
    if email and '@' not in email:
        raise ValueError("Invalid email format.")
    bio = profile.get('bio')
    if bio and len(bio) > MAX_BIO_LENGTH:
        raise ValueError(f"Bio cannot exceed {MAX_BIO_LENGTH} characters.")
    for counter in COUNTER_FIELDS:
        value = profile.get(counter)
        if value is not None and value < 0:
            raise ValueError(f"{counter} cannot be negative.")


class UserService:
    """Profiles, genre search and per-book reading progress."""

    def __init__(self):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')

    def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        doc = self.users_ref.document(uid).get()
        return doc.to_dict() if doc.exists else None

    def get_public_profile(self, uid: str, viewer_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        profile = self.get_profile(uid)
        if not profile:
            return None
        friends = profile.get('friends') or []
        profile['friend_count'] = len(friends)
        profile['is_friend'] = bool(viewer_id) and viewer_id in friends
        return profile

    def update_profile(self, uid: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Applies whitelisted field changes and bumps updated_at."""
        changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
        validate_profile(changes)
        if 'favorite_genres' in changes:
            # keep first spelling, drop case-insensitive duplicates
            seen = set()
            genres = []
            for genre in changes['favorite_genres']:
                key = genre.strip().lower()
                if key and key not in seen:
                    seen.add(key)
                    genres.append(genre.strip())
            changes['favorite_genres'] = genres

        user_ref = self.users_ref.document(uid)
        if not user_ref.get().exists:
            raise NotFoundError("User not found.")

        changes['updated_at'] = DateTimeUtils.now()
        try:
            user_ref.update(DateTimeUtils.for_firestore(changes))
        except Exception as e:
            logging.error(f"Profile update failed (uid: {uid}): {e}", exc_info=True)
            raise
        return user_ref.get().to_dict()

    def search_by_genre(self, genre: str, exclude_uid: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Readers who list `genre` among their favourites."""
        genre = (genre or '').strip()
        if not genre:
            return []
        docs = self.users_ref.where('favorite_genres', 'array_contains', genre).limit(limit + 1).stream()
        return [doc.to_dict() for doc in docs if doc.id != exclude_uid][:limit]

    # --- reading progress ---
    def save_progress(self, uid: str, book_id: str, current_page: int, total_pages: int) -> Dict[str, Any]:
        if current_page > total_pages:
            raise ValueError("current_page cannot be greater than total_pages.")
        progress = ReadingProgress(current_page=current_page, total_pages=total_pages)
        data = DateTimeUtils.for_firestore(asdict(progress))
        self.users_ref.document(uid).collection('progress').document(book_id).set(data, merge=True)
        return data

    def get_progress(self, uid: str, book_id: str) -> Optional[Dict[str, Any]]:
        doc = self.users_ref.document(uid).collection('progress').document(book_id).get()
        return doc.to_dict() if doc.exists else None
