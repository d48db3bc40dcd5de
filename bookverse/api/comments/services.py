# bookverse/api/comments/services.py

import logging
import uuid
from firebase_admin import firestore
from typing import Optional, Dict, Any, List

from bookverse.core.exceptions import NotFoundError
from bookverse.models.comment import Comment
from bookverse.models.notification import NotificationType
from bookverse.scoring.sentiment import SentimentSummary, summarize_sentiment
from bookverse.services.notification_service import NotificationService
from bookverse.services.openai_service import OpenAIService
from bookverse.utils.datetime_utils import DateTimeUtils


def _likes_then_recency(comment: Dict[str, Any]):
    created = DateTimeUtils.coerce_datetime(comment.get('created_at'))
    return (comment.get('like_count') or 0, created.timestamp() if created else 0.0)


class CommentService:
    """
    Per-page book comments.
    - The sentiment label is resolved before the comment is written and never changes.
    - like_count and liked_by only change together, inside a transaction.
    - Page and book moods are recomputed from the stored labels on every request.
    """
    def __init__(self, ai_service: OpenAIService, notification_service: Optional[NotificationService] = None):
        self.db = firestore.client()
        self.books_ref = self.db.collection('books')
        self.users_ref = self.db.collection('users')
        self.ai_service = ai_service
        self.notification_service = notification_service

    def _comments_ref(self, book_id: str):
        return self.books_ref.document(book_id).collection('comments')

    def create_comment(self, book_id: str, page: int, user_id: str, text: str) -> Dict[str, Any]:
        if page < 1:
            raise ValueError("Page numbers start at 1.")

        author_doc = self.users_ref.document(user_id).get()
        if not author_doc.exists:
            raise NotFoundError("Comment author not found.")
        author = author_doc.to_dict()

        # classified up front so a comment is never stored without a label
        sentiment = self.ai_service.classify_sentiment(text)

        comment = Comment(
            comment_id=str(uuid.uuid4()),
            book_id=book_id,
            page=page,
            text=text,
            user_id=user_id,
            user_display_name=author.get('display_name') or (author.get('email') or '').split('@')[0] or 'Anonymous',
            sentiment=sentiment
        )
        comment_data = DateTimeUtils.for_firestore(comment.to_document())

        transaction = self.db.transaction()

        @firestore.transactional
        def _create_in_transaction(transaction, book_id, comment_data):
            transaction.set(self._comments_ref(book_id).document(comment_data['comment_id']), comment_data)
            transaction.set(self.books_ref.document(book_id), {'comment_count': firestore.Increment(1)}, merge=True)

        try:
            _create_in_transaction(transaction, book_id, comment_data)
        except Exception as e:
            logging.error(f"Comment creation failed (book_id: {book_id}, page: {page}): {e}", exc_info=True)
            raise

        logging.info(f"Comment created (book_id: {book_id}, page: {page}, sentiment: {sentiment.value})")
        return comment_data

    def get_page_comments(self, book_id: str, page: int, viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most liked first, newest first among equals."""
        docs = self._comments_ref(book_id).where('page', '==', page).stream()
        comments = [doc.to_dict() for doc in docs]
        comments.sort(key=_likes_then_recency, reverse=True)
        for comment in comments:
            comment['is_liked'] = bool(viewer_id) and viewer_id in (comment.get('liked_by') or [])
        return comments

    def toggle_comment_like(self, user_id: str, book_id: str, comment_id: str) -> Dict[str, Any]:
        """
        Adds or removes the user's like.

        :return: {"is_liked": bool, "like_count": int}
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _toggle_like_in_transaction(transaction, user_id, book_id, comment_id):
            comment_ref = self._comments_ref(book_id).document(comment_id)
            comment_doc = comment_ref.get(transaction=transaction)
            if not comment_doc.exists:
                raise NotFoundError("Comment not found.")

            comment_data = comment_doc.to_dict()
            liked_by = comment_data.get('liked_by') or []
            if user_id in liked_by:
                transaction.update(comment_ref, {
                    'liked_by': firestore.ArrayRemove([user_id]),
                    'like_count': firestore.Increment(-1)
                })
                return False, len(liked_by) - 1, comment_data
            transaction.update(comment_ref, {
                'liked_by': firestore.ArrayUnion([user_id]),
                'like_count': firestore.Increment(1)
            })
            return True, len(liked_by) + 1, comment_data

        try:
            is_liked, like_count, comment_data = _toggle_like_in_transaction(transaction, user_id, book_id, comment_id)
        except Exception as e:
            logging.error(f"Comment like toggle failed (comment_id: {comment_id}): {e}", exc_info=True)
            raise

        if is_liked and self.notification_service:
            self.notification_service.create_notification(
                recipient_id=comment_data.get('user_id'), sender_id=user_id, n_type=NotificationType.COMMENT_LIKE,
                target_id=comment_id, target_type='comment', title="Someone liked your comment",
                message=(comment_data.get('text') or '')[:50]
            )
        return {"is_liked": is_liked, "like_count": like_count}

    def delete_comment(self, user_id: str, book_id: str, comment_id: str) -> None:
        """Only the author may delete a comment."""
        transaction = self.db.transaction()

        @firestore.transactional
        def _delete_in_transaction(transaction, user_id, book_id, comment_id):
            comment_ref = self._comments_ref(book_id).document(comment_id)
            comment_doc = comment_ref.get(transaction=transaction)
            if not comment_doc.exists:
                raise NotFoundError("Comment not found.")
            if comment_doc.to_dict().get('user_id') != user_id:
                raise PermissionError("You can only delete your own comments.")

            transaction.delete(comment_ref)
            transaction.set(self.books_ref.document(book_id), {'comment_count': firestore.Increment(-1)}, merge=True)

        _delete_in_transaction(transaction, user_id, book_id, comment_id)
        logging.info(f"Comment deleted (book_id: {book_id}, comment_id: {comment_id})")

    def get_page_sentiment(self, book_id: str, page: int) -> SentimentSummary:
        docs = self._comments_ref(book_id).where('page', '==', page).stream()
        return summarize_sentiment(doc.to_dict() for doc in docs)

    def get_book_sentiment(self, book_id: str) -> SentimentSummary:
        """Overall reader mood across every page of the book."""
        docs = self._comments_ref(book_id).stream()
        return summarize_sentiment(doc.to_dict() for doc in docs)
