# bookverse/models/message.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def conversation_id_for(user_a: str, user_b: str) -> str:
    """Both participants map to the same conversation document."""
    return "_".join(sorted([user_a, user_b]))


@dataclass
class Message:
    """Document structure of 'conversations/{conversation_id}/messages'."""
    message_id: str
    conversation_id: str
    sender_id: str
    sender_name: str
    text: str
    kind: str = "text"  # 'text' | 'system' | 'recommendation'
    recipient_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
