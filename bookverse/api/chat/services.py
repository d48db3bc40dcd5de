# bookverse/api/chat/services.py
import logging
import uuid
from dataclasses import asdict
from datetime import timedelta
from firebase_admin import firestore
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError, ConflictError
from bookverse.models.message import Message, conversation_id_for
from bookverse.models.notification import NotificationType
from bookverse.services.notification_service import NotificationService
from bookverse.services.openai_service import OpenAIService, format_recommendation_message
from bookverse.utils.datetime_utils import DateTimeUtils

RECOMMENDATION_WINDOW = timedelta(hours=1)


def format_conversation_history(messages: List[Dict[str, Any]], viewer_id: str, other_name: str) -> str:
    """One "Speaker: text" line per message, the caller is "Me"."""
    lines = []
    for message in messages:
        speaker = 'Me' if message.get('sender_id') == viewer_id else other_name
        lines.append(f"{speaker}: {message.get('text', '')}")
    return "\n".join(lines)


class ChatService:
    """
    Direct messages between two users, stored under
    conversations/{sorted uids joined by '_'}/messages, plus the
    AI book recommendations built from the last hour of a conversation.
    """
    def __init__(self, ai_service: OpenAIService, notification_service: Optional[NotificationService] = None):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')
        self.conversations_ref = self.db.collection('conversations')
        self.ai_service = ai_service
        self.notification_service = notification_service

    def _messages_ref(self, user_a: str, user_b: str):
        return self.conversations_ref.document(conversation_id_for(user_a, user_b)).collection('messages')

    def _get_user(self, user_id: str) -> Dict[str, Any]:
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            raise NotFoundError("User not found.")
        return user_doc.to_dict()

    @staticmethod
    def _name_of(user: Dict[str, Any], fallback: str) -> str:
        return user.get('display_name') or (user.get('email') or '').split('@')[0] or fallback

    def send_message(self, sender_id: str, recipient_id: str, text: str, kind: str = 'text') -> Dict[str, Any]:
        if sender_id == recipient_id:
            raise ConflictError("You cannot message yourself.")
        sender = self._get_user(sender_id)
        self._get_user(recipient_id)

        conversation_id = conversation_id_for(sender_id, recipient_id)
        message = Message(
            message_id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender_id=sender_id,
            sender_name=self._name_of(sender, 'User'),
            text=text,
            kind=kind,
            recipient_id=recipient_id
        )
        message_data = DateTimeUtils.for_firestore(asdict(message))

        batch = self.db.batch()
        batch.set(self._messages_ref(sender_id, recipient_id).document(message.message_id), message_data)
        batch.set(self.conversations_ref.document(conversation_id), {
            'participants': sorted([sender_id, recipient_id]),
            'last_message': text[:100],
            'updated_at': message_data['created_at']
        }, merge=True)
        batch.commit()
        return message_data

    def get_messages(self, user_id: str, other_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """The newest `limit` messages, oldest first."""
        query = (self._messages_ref(user_id, other_id)
                 .order_by('created_at', direction=firestore.Query.DESCENDING)
                 .limit(limit))
        return list(reversed([doc.to_dict() for doc in query.stream()]))

    def unsend_message(self, user_id: str, other_id: str, message_id: str) -> None:
        message_ref = self._messages_ref(user_id, other_id).document(message_id)
        message_doc = message_ref.get()
        if not message_doc.exists:
            raise NotFoundError("Message not found.")
        if message_doc.to_dict().get('sender_id') != user_id:
            raise PermissionError("You can only unsend your own messages.")
        message_ref.delete()
        logging.info(f"Message unsent (conversation: {conversation_id_for(user_id, other_id)}, message_id: {message_id})")

    def request_recommendations(self, user_id: str, other_id: str) -> Dict[str, Any]:
        """
        Ask the model for books matching the mood of the last hour of chat.
        A system message tells both participants that an analysis is running.

        :raises ValueError: no messages in the window
        :raises RecommendationError: the model call failed
        """
        requester = self._get_user(user_id)
        other = self._get_user(other_id)
        requester_name = self._name_of(requester, 'User')

        self.send_message(
            user_id, other_id,
            f"✨ AI Analysis in Progress: {requester_name} initiated a book recommendation request. "
            "Our system is analyzing recent chat history to find your perfect reads.",
            kind='system'
        )

        since = DateTimeUtils.now() - RECOMMENDATION_WINDOW
        query = (self._messages_ref(user_id, other_id)
                 .where('created_at', '>=', since)
                 .order_by('created_at'))
        recent = [doc.to_dict() for doc in query.stream()]
        recent = [m for m in recent if m.get('kind', 'text') == 'text']
        if not recent:
            raise ValueError("No recent messages found. Chat a bit more!")

        history = format_conversation_history(recent, user_id, self._name_of(other, 'Friend'))
        result = self.ai_service.recommend_books(history)
        logging.info(f"Recommendations generated (conversation: {conversation_id_for(user_id, other_id)}, mood: {result['mood']})")
        return result

    def share_recommendations(self, user_id: str, other_id: str, mood: str,
                              recommendations: List[Dict[str, Any]]) -> Dict[str, Any]:
        other = self._get_user(other_id)
        text = format_recommendation_message(self._name_of(other, 'friend'), mood, recommendations)
        message = self.send_message(user_id, other_id, text, kind='recommendation')

        if self.notification_service:
            self.notification_service.create_notification(
                recipient_id=other_id, sender_id=user_id, n_type=NotificationType.NEW_RECOMMENDATION,
                target_id=message['conversation_id'], target_type='chat',
                title="New book recommendations", message=f"{len(recommendations)} books picked for your mood."
            )
        return message
