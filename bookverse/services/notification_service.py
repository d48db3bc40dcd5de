# bookverse/services/notification_service.py
import logging
import uuid
from dataclasses import asdict
from firebase_admin import firestore
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError
from bookverse.models.notification import Notification, NotificationType
from bookverse.utils.datetime_utils import DateTimeUtils


class NotificationService:
    """
    Shared notification logic: other services call create_notification, the
    notifications blueprint lists and maintains a user's inbox.
    """
    def __init__(self):
        self.db = firestore.client()
        self.notifications_ref = self.db.collection('notifications')
        self.users_ref = self.db.collection('users')

    def create_notification(self, recipient_id: str, sender_id: str, n_type: NotificationType, target_id: str,
                            target_type: Optional[str] = None, title: Optional[str] = None,
                            message: Optional[str] = None) -> Optional[str]:
        """
        Store one notification for `recipient_id`.
        - Nothing is created when a user triggers a notification for themselves.
        - Failures are logged and swallowed: a missing notification must never
          fail the write that caused it.

        :return: the new notification id, or None when nothing was stored
        """
        if not recipient_id or recipient_id == sender_id:
            return None

        try:
            if sender_id == "system":
                sender_data = {"uid": "system", "display_name": "Bookverse", "photo_url": None}
            else:
                sender_doc = self.users_ref.document(sender_id).get()
                if not sender_doc.exists:
                    logging.warning(f"Notification skipped: sender not found (ID: {sender_id})")
                    return None
                sender_info = sender_doc.to_dict()
                sender_data = {
                    "uid": sender_id,
                    "display_name": sender_info.get('display_name'),
                    "photo_url": sender_info.get('photo_url')
                }

            notification = Notification(
                notification_id=str(uuid.uuid4()),
                recipient_id=recipient_id,
                sender=sender_data,
                type=n_type,
                target_id=target_id,
                target_type=target_type,
                title=title,
                message=message
            )

            notification_dict = asdict(notification)
            notification_dict['type'] = notification.type.value

            self.notifications_ref.document(notification.notification_id).set(
                DateTimeUtils.for_firestore(notification_dict)
            )
            logging.info(f"{n_type.value} notification created: {sender_id} -> {recipient_id}")
            return notification.notification_id

        except Exception as e:
            logging.error(f"Notification creation failed: {e}", exc_info=True)
            return None

    def get_notifications(self, user_id: str, limit: int = 20, unread_only: bool = False) -> List[Dict[str, Any]]:
        """Newest first."""
        query = self.notifications_ref.where('recipient_id', '==', user_id)
        if unread_only:
            query = query.where('is_read', '==', False)
        docs = query.order_by('created_at', direction=firestore.Query.DESCENDING).limit(limit).stream()
        return [doc.to_dict() for doc in docs]

    def count_unread(self, user_id: str) -> int:
        docs = self.notifications_ref.where('recipient_id', '==', user_id).where('is_read', '==', False).stream()
        return sum(1 for _ in docs)

    def _get_owned_ref(self, user_id: str, notification_id: str):
        ref = self.notifications_ref.document(notification_id)
        doc = ref.get()
        if not doc.exists:
            raise NotFoundError("Notification not found.")
        if doc.to_dict().get('recipient_id') != user_id:
            raise PermissionError("This notification belongs to another user.")
        return ref

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        ref = self._get_owned_ref(user_id, notification_id)
        ref.update({'is_read': True})

    def mark_all_as_read(self, user_id: str) -> int:
        """Marks every unread notification of the user as read. Returns how many changed."""
        docs = list(self.notifications_ref.where('recipient_id', '==', user_id).where('is_read', '==', False).stream())
        if not docs:
            return 0
        batch = self.db.batch()
        for doc in docs:
            batch.update(doc.reference, {'is_read': True})
        batch.commit()
        logging.info(f"Marked {len(docs)} notifications as read (user_id: {user_id})")
        return len(docs)

    def delete_notification(self, user_id: str, notification_id: str) -> None:
        ref = self._get_owned_ref(user_id, notification_id)
        ref.delete()

    def delete_all(self, user_id: str) -> int:
        docs = list(self.notifications_ref.where('recipient_id', '==', user_id).stream())
        if not docs:
            return 0
        batch = self.db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        logging.info(f"Deleted {len(docs)} notifications (user_id: {user_id})")
        return len(docs)
