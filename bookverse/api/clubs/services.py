# bookverse/api/clubs/services.py
import logging
import uuid
from dataclasses import asdict
from firebase_admin import firestore
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError, ConflictError
from bookverse.models.club import Club, ClubMember, ClubPost
from bookverse.utils.datetime_utils import DateTimeUtils


def member_doc_id(club_id: str, user_id: str) -> str:
    return f"{club_id}_{user_id}"


class ClubService:
    """
    Book clubs.
    Membership lives in the top-level 'club_members' collection; the club's
    member_count changes only in the same transaction that writes or deletes
    a membership document.
    """
    def __init__(self, comment_service=None):
        self.db = firestore.client()
        self.clubs_ref = self.db.collection('clubs')
        self.members_ref = self.db.collection('club_members')
        self.users_ref = self.db.collection('users')
        self.comment_service = comment_service

    def _display_name(self, user_id: str) -> str:
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            raise NotFoundError("User not found.")
        user = user_doc.to_dict()
        return user.get('display_name') or (user.get('email') or '').split('@')[0] or 'Reader'

    def is_member(self, club_id: str, user_id: Optional[str]) -> bool:
        if not user_id:
            return False
        return self.members_ref.document(member_doc_id(club_id, user_id)).get().exists

    def create_club(self, user_id: str, name: str, description: Optional[str] = None,
                    image_url: Optional[str] = None, book_id: Optional[str] = None) -> Dict[str, Any]:
        club = Club(
            club_id=str(uuid.uuid4()),
            name=name,
            created_by=user_id,
            created_by_display_name=self._display_name(user_id),
            description=description,
            image_url=image_url,
            book_id=book_id,
            member_count=1
        )
        club_data = DateTimeUtils.for_firestore(asdict(club))
        owner_data = DateTimeUtils.for_firestore(asdict(ClubMember(club_id=club.club_id, user_id=user_id, role='owner')))

        transaction = self.db.transaction()

        @firestore.transactional
        def _create_in_transaction(transaction, club_data, owner_data):
            transaction.set(self.clubs_ref.document(club_data['club_id']), club_data)
            transaction.set(self.members_ref.document(member_doc_id(club_data['club_id'], owner_data['user_id'])), owner_data)

        try:
            _create_in_transaction(transaction, club_data, owner_data)
        except Exception as e:
            logging.error(f"Club creation failed (user_id: {user_id}): {e}", exc_info=True)
            raise

        logging.info(f"Club created (club_id: {club.club_id}, owner: {user_id})")
        return club_data

    def list_clubs(self, limit: int = 50) -> List[Dict[str, Any]]:
        query = self.clubs_ref.order_by('created_at', direction=firestore.Query.DESCENDING).limit(limit)
        return [doc.to_dict() for doc in query.stream()]

    def get_club(self, club_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        club_doc = self.clubs_ref.document(club_id).get()
        if not club_doc.exists:
            raise NotFoundError("Club not found.")
        club = club_doc.to_dict()
        club['is_member'] = self.is_member(club_id, viewer_id)
        if club.get('book_id') and self.comment_service:
            club['book_sentiment'] = self.comment_service.get_book_sentiment(club['book_id']).to_dict()
        return club

    def join_club(self, club_id: str, user_id: str) -> Dict[str, Any]:
        if not self.users_ref.document(user_id).get().exists:
            raise NotFoundError("User not found.")

        transaction = self.db.transaction()

        @firestore.transactional
        def _join_in_transaction(transaction, club_id, user_id):
            club_ref = self.clubs_ref.document(club_id)
            member_ref = self.members_ref.document(member_doc_id(club_id, user_id))
            club_doc = club_ref.get(transaction=transaction)
            if not club_doc.exists:
                raise NotFoundError("Club not found.")
            if member_ref.get(transaction=transaction).exists:
                raise ConflictError("You are already a member of this club.")

            member = DateTimeUtils.for_firestore(asdict(ClubMember(club_id=club_id, user_id=user_id)))
            transaction.set(member_ref, member)
            transaction.update(club_ref, {'member_count': firestore.Increment(1)})
            return (club_doc.to_dict().get('member_count') or 0) + 1

        member_count = _join_in_transaction(transaction, club_id, user_id)
        logging.info(f"Club joined (club_id: {club_id}, user_id: {user_id})")
        return {"club_id": club_id, "is_member": True, "member_count": member_count}

    def leave_club(self, club_id: str, user_id: str) -> Dict[str, Any]:
        """The owner cannot leave their own club."""
        transaction = self.db.transaction()

        @firestore.transactional
        def _leave_in_transaction(transaction, club_id, user_id):
            club_ref = self.clubs_ref.document(club_id)
            member_ref = self.members_ref.document(member_doc_id(club_id, user_id))
            club_doc = club_ref.get(transaction=transaction)
            if not club_doc.exists:
                raise NotFoundError("Club not found.")
            member_doc = member_ref.get(transaction=transaction)
            if not member_doc.exists:
                raise ConflictError("You are not a member of this club.")
            if member_doc.to_dict().get('role') == 'owner':
                raise ConflictError("The club owner cannot leave the club.")

            transaction.delete(member_ref)
            transaction.update(club_ref, {'member_count': firestore.Increment(-1)})
            return max((club_doc.to_dict().get('member_count') or 1) - 1, 0)

        member_count = _leave_in_transaction(transaction, club_id, user_id)
        logging.info(f"Club left (club_id: {club_id}, user_id: {user_id})")
        return {"club_id": club_id, "is_member": False, "member_count": member_count}

    def create_club_post(self, club_id: str, user_id: str, body: str, page_number: Optional[int] = None) -> Dict[str, Any]:
        if not self.clubs_ref.document(club_id).get().exists:
            raise NotFoundError("Club not found.")
        if not self.is_member(club_id, user_id):
            raise PermissionError("Only club members can post.")

        post = ClubPost(
            post_id=str(uuid.uuid4()),
            club_id=club_id,
            body=body,
            author_id=user_id,
            author_name=self._display_name(user_id),
            page_number=page_number
        )
        post_data = DateTimeUtils.for_firestore(asdict(post))
        self.clubs_ref.document(club_id).collection('posts').document(post.post_id).set(post_data)
        logging.info(f"Club post created (club_id: {club_id}, post_id: {post.post_id})")
        return post_data

    def get_club_posts(self, club_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        if not self.clubs_ref.document(club_id).get().exists:
            raise NotFoundError("Club not found.")
        query = (self.clubs_ref.document(club_id).collection('posts')
                 .order_by('created_at', direction=firestore.Query.DESCENDING)
                 .limit(limit))
        return [doc.to_dict() for doc in query.stream()]
