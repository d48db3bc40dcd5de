# bookverse/models/notification.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional


class NotificationType(Enum):
    """Notification kinds."""
    POST_LIKE = "POST_LIKE"
    POST_COMMENT = "POST_COMMENT"
    COMMENT_LIKE = "COMMENT_LIKE"
    FRIEND_REQUEST = "FRIEND_REQUEST"
    FRIEND_ACCEPTED = "FRIEND_ACCEPTED"
    CLUB_UPDATE = "CLUB_UPDATE"
    NEW_RECOMMENDATION = "NEW_RECOMMENDATION"


@dataclass
class Notification:
    """
    Document structure of the Firestore 'notifications' collection.
    """
    notification_id: str
    recipient_id: str       # user who receives the notification
    sender: Dict[str, Any]  # user (or system) that triggered it
    type: NotificationType
    target_id: str          # post_id, comment_id, club_id, request_id ...
    target_type: Optional[str] = None  # 'post' | 'comment' | 'club' | 'friend_request' | 'chat'
    title: Optional[str] = None
    message: Optional[str] = None
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
