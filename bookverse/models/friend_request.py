# bookverse/models/friend_request.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class FriendRequestStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass
class FriendRequest:
    """
    Document structure of the Firestore 'friendRequests' collection.
    Only pending requests are stored; accept and decline delete the document.
    """
    request_id: str
    from_user_id: str
    from_user_name: str
    to_user_id: str
    from_user_photo: Optional[str] = None
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
