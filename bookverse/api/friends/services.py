# bookverse/api/friends/services.py
import logging
import uuid
from dataclasses import asdict
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError, ConflictError
from bookverse.models.friend_request import FriendRequest, FriendRequestStatus
from bookverse.models.notification import NotificationType
from bookverse.services.notification_service import NotificationService
from bookverse.utils.datetime_utils import DateTimeUtils


class FriendService:
    """
    The friend graph is symmetric: both users carry each other's uid in their
    `friends` array. Only pending requests are stored. Accepting or declining a
    request deletes it, and accept/unfriend touch both profiles in a single
    transaction so the relation is never one-sided.
    """
    def __init__(self, notification_service: Optional[NotificationService] = None):
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')
        self.requests_ref = self.db.collection('friendRequests')
        self.notification_service = notification_service

    def _pending_between(self, from_uid: str, to_uid: str) -> List[Any]:
        query = (self.requests_ref
                 .where(filter=FieldFilter('from_user_id', '==', from_uid))
                 .where(filter=FieldFilter('to_user_id', '==', to_uid))
                 .where(filter=FieldFilter('status', '==', FriendRequestStatus.PENDING.value)))
        return list(query.limit(1).stream())

    def send_request(self, from_uid: str, to_uid: str) -> Dict[str, Any]:
        if from_uid == to_uid:
            raise ConflictError("You cannot send a friend request to yourself.")

        sender_doc = self.users_ref.document(from_uid).get()
        target_doc = self.users_ref.document(to_uid).get()
        if not sender_doc.exists or not target_doc.exists:
            raise NotFoundError("User not found.")

        sender = sender_doc.to_dict()
        if to_uid in (sender.get('friends') or []):
            raise ConflictError("You are already friends.")
        if self._pending_between(from_uid, to_uid):
            raise ConflictError("A friend request is already pending.")
        if self._pending_between(to_uid, from_uid):
            raise ConflictError("This user has already sent you a friend request.")

        email = sender.get('email') or ''
        request = FriendRequest(
            request_id=str(uuid.uuid4()),
            from_user_id=from_uid,
            from_user_name=sender.get('display_name') or email.split('@')[0] or 'User',
            from_user_photo=sender.get('photo_url'),
            to_user_id=to_uid
        )
        request_data = asdict(request)
        request_data['status'] = request.status.value
        request_data = DateTimeUtils.for_firestore(request_data)
        self.requests_ref.document(request.request_id).set(request_data)
        logging.info(f"Friend request sent: {from_uid} -> {to_uid}")

        if self.notification_service:
            self.notification_service.create_notification(
                recipient_id=to_uid, sender_id=from_uid, n_type=NotificationType.FRIEND_REQUEST,
                target_id=request.request_id, target_type='friend_request',
                title="New friend request", message=f"{request.from_user_name} wants to be your friend."
            )
        return request_data

    def get_incoming_requests(self, uid: str) -> List[Dict[str, Any]]:
        docs = (self.requests_ref
                .where(filter=FieldFilter('to_user_id', '==', uid))
                .where(filter=FieldFilter('status', '==', FriendRequestStatus.PENDING.value))
                .stream())
        return sorted((doc.to_dict() for doc in docs), key=lambda r: r.get('created_at'), reverse=True)

    def get_outgoing_requests(self, uid: str) -> List[Dict[str, Any]]:
        docs = (self.requests_ref
                .where(filter=FieldFilter('from_user_id', '==', uid))
                .where(filter=FieldFilter('status', '==', FriendRequestStatus.PENDING.value))
                .stream())
        return sorted((doc.to_dict() for doc in docs), key=lambda r: r.get('created_at'), reverse=True)

    def accept_request(self, uid: str, request_id: str) -> Dict[str, Any]:
        """Only the addressee may accept. Deletes the request and links both users."""
        transaction = self.db.transaction()

        @firestore.transactional
        def _accept_in_transaction(transaction, uid, request_id):
            request_ref = self.requests_ref.document(request_id)
            request_doc = request_ref.get(transaction=transaction)
            if not request_doc.exists:
                raise NotFoundError("Friend request not found.")
            request_data = request_doc.to_dict()
            if request_data.get('to_user_id') != uid:
                raise PermissionError("Only the recipient can accept this request.")

            sender_ref = self.users_ref.document(request_data['from_user_id'])
            receiver_ref = self.users_ref.document(uid)
            if not sender_ref.get(transaction=transaction).exists:
                raise NotFoundError("The sender no longer exists.")
            if not receiver_ref.get(transaction=transaction).exists:
                raise NotFoundError("User not found.")

            transaction.delete(request_ref)
            transaction.update(receiver_ref, {'friends': firestore.ArrayUnion([request_data['from_user_id']])})
            transaction.update(sender_ref, {'friends': firestore.ArrayUnion([uid])})
            return request_data

        try:
            request_data = _accept_in_transaction(transaction, uid, request_id)
        except Exception as e:
            logging.error(f"Friend request accept failed (request_id: {request_id}): {e}", exc_info=True)
            raise

        logging.info(f"Friend request accepted: {request_data['from_user_id']} <-> {uid}")
        if self.notification_service:
            self.notification_service.create_notification(
                recipient_id=request_data['from_user_id'], sender_id=uid, n_type=NotificationType.FRIEND_ACCEPTED,
                target_id=uid, target_type='user', title="Friend request accepted"
            )
        return request_data

    def decline_request(self, uid: str, request_id: str) -> None:
        """The addressee declines, or the sender withdraws. Either way the request is deleted."""
        request_ref = self.requests_ref.document(request_id)
        request_doc = request_ref.get()
        if not request_doc.exists:
            raise NotFoundError("Friend request not found.")
        request_data = request_doc.to_dict()
        if uid not in (request_data.get('to_user_id'), request_data.get('from_user_id')):
            raise PermissionError("This request does not involve you.")
        request_ref.delete()

    def remove_friend(self, uid: str, friend_uid: str) -> None:
        """Unfriend: removes each user from the other's list in one transaction."""
        transaction = self.db.transaction()

        @firestore.transactional
        def _remove_in_transaction(transaction, uid, friend_uid):
            user_ref = self.users_ref.document(uid)
            friend_ref = self.users_ref.document(friend_uid)
            user_doc = user_ref.get(transaction=transaction)
            friend_doc = friend_ref.get(transaction=transaction)
            if not user_doc.exists:
                raise NotFoundError("User not found.")
            if friend_uid not in (user_doc.to_dict().get('friends') or []):
                raise NotFoundError("This user is not in your friend list.")

            transaction.update(user_ref, {'friends': firestore.ArrayRemove([friend_uid])})
            if friend_doc.exists:
                transaction.update(friend_ref, {'friends': firestore.ArrayRemove([uid])})

        _remove_in_transaction(transaction, uid, friend_uid)
        logging.info(f"Friendship removed: {uid} <-> {friend_uid}")

    def get_friend_ids(self, uid: str) -> List[str]:
        doc = self.users_ref.document(uid).get()
        if not doc.exists:
            return []
        return list(doc.to_dict().get('friends') or [])

    def list_friends(self, uid: str) -> List[Dict[str, Any]]:
        """Friend profiles. Ids whose profile was deleted are skipped."""
        friend_ids = self.get_friend_ids(uid)
        friends = []
        for i in range(0, len(friend_ids), 30):
            chunk = [self.users_ref.document(f) for f in friend_ids[i:i + 30]]
            friends.extend(doc.to_dict() for doc in self.users_ref.where('__name__', 'in', chunk).stream())
        return friends
