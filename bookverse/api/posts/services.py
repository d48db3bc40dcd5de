# bookverse/api/posts/services.py
import logging
import uuid
from dataclasses import asdict
from firebase_admin import firestore
from typing import Optional, Dict, Any, List, Tuple

from bookverse.core.exceptions import NotFoundError
from bookverse.models.comment import PostComment
from bookverse.models.notification import NotificationType
from bookverse.models.post import Post
from bookverse.scoring.feed_ranking import DEFAULT_WEIGHTS, RankingWeights, ViewerProfile, rank_posts
from bookverse.services.notification_service import NotificationService
from bookverse.utils.datetime_utils import DateTimeUtils


class PostService:
    """
    Social feed posts.
    - likes/liked_by and the comments counter only change inside transactions
    - the feed fetches the most recent posts and lets the ranker order them
    """
    def __init__(self, notification_service: Optional[NotificationService] = None,
                 ranking_weights: RankingWeights = DEFAULT_WEIGHTS, fetch_limit: int = 50):
        self.db = firestore.client()
        self.posts_ref = self.db.collection('posts')
        self.users_ref = self.db.collection('users')
        self.notification_service = notification_service
        self.ranking_weights = ranking_weights
        self.fetch_limit = fetch_limit

    def _author_snapshot(self, user_id: str) -> Dict[str, Any]:
        user_doc = self.users_ref.document(user_id).get()
        if not user_doc.exists:
            raise NotFoundError("Author not found.")
        return user_doc.to_dict()

    def create_post(self, user_id: str, content: str, book_title: Optional[str] = None,
                    book_author: Optional[str] = None, genre: Optional[str] = None) -> Dict[str, Any]:
        author = self._author_snapshot(user_id)
        new_post = Post(
            post_id=str(uuid.uuid4()),
            user_id=user_id,
            user_display_name=author.get('display_name') or 'Anonymous',
            user_photo_url=author.get('photo_url'),
            content=content,
            book_title=book_title,
            book_author=book_author,
            genre=genre
        )
        try:
            post_data = DateTimeUtils.for_firestore(asdict(new_post))
            self.posts_ref.document(new_post.post_id).set(post_data)
            logging.info(f"Post created (post_id: {new_post.post_id}, user_id: {user_id})")
            return post_data
        except Exception as e:
            logging.error(f"Post creation failed (user_id: {user_id}): {e}", exc_info=True)
            raise

    def get_post(self, post_id: str) -> Dict[str, Any]:
        doc = self.posts_ref.document(post_id).get()
        if not doc.exists:
            raise NotFoundError("Post not found.")
        return doc.to_dict()

    def get_feed(self, viewer_id: Optional[str]) -> List[Dict[str, Any]]:
        """
        The FEED_FETCH_LIMIT most recent posts, ranked for the viewer.
        Each entry carries its `score` and an `is_liked` flag.
        """
        docs = (self.posts_ref
                .order_by('created_at', direction=firestore.Query.DESCENDING)
                .limit(self.fetch_limit)
                .stream())
        posts = [Post.from_document(doc.to_dict()) for doc in docs]

        viewer = None
        friend_ids: List[str] = []
        author_genres: Dict[str, List[str]] = {}
        if viewer_id:
            viewer_doc = self.users_ref.document(viewer_id).get()
            if viewer_doc.exists:
                viewer_data = viewer_doc.to_dict()
                viewer = ViewerProfile.from_document(dict(viewer_data, uid=viewer_id))
                friend_ids = list(viewer_data.get('friends') or [])
                author_genres = self._author_genres({p.user_id for p in posts if p.user_id})

        ranked = rank_posts(
            posts,
            viewer=viewer,
            friend_ids=friend_ids,
            weights=self.ranking_weights,
            author_genres=author_genres
        )

        feed = []
        for entry in ranked:
            item = entry.to_dict()
            item['is_liked'] = bool(viewer_id) and viewer_id in entry.post.liked_by
            feed.append(item)
        return feed

    def _author_genres(self, author_ids) -> Dict[str, List[str]]:
        result = {}
        ids = sorted(author_ids)
        for i in range(0, len(ids), 30):
            chunk = [self.users_ref.document(uid) for uid in ids[i:i + 30]]
            for doc in self.users_ref.where('__name__', 'in', chunk).stream():
                result[doc.id] = list(doc.to_dict().get('favorite_genres') or [])
        return result

    def toggle_post_like(self, user_id: str, post_id: str) -> Dict[str, Any]:
        """
        Likes or unlikes a post. The membership set and the counter change in
        the same transaction, so likes == len(liked_by) always holds.

        :return: {"is_liked": bool, "likes": int}
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _toggle_like_in_transaction(transaction, user_id, post_id) -> Tuple[bool, int, Dict[str, Any]]:
            post_ref = self.posts_ref.document(post_id)
            post_doc = post_ref.get(transaction=transaction)
            if not post_doc.exists:
                raise NotFoundError("Post not found.")

            post_data = post_doc.to_dict()
            liked_by = post_data.get('liked_by') or []
            likes = len(liked_by)
            if user_id in liked_by:
                transaction.update(post_ref, {
                    'liked_by': firestore.ArrayRemove([user_id]),
                    'likes': firestore.Increment(-1)
                })
                return False, likes - 1, post_data
            transaction.update(post_ref, {
                'liked_by': firestore.ArrayUnion([user_id]),
                'likes': firestore.Increment(1)
            })
            return True, likes + 1, post_data

        try:
            is_liked, likes, post_data = _toggle_like_in_transaction(transaction, user_id, post_id)
        except Exception as e:
            logging.error(f"Post like toggle failed (user_id: {user_id}, post_id: {post_id}): {e}", exc_info=True)
            raise

        if is_liked and self.notification_service:
            self.notification_service.create_notification(
                recipient_id=post_data.get('user_id'), sender_id=user_id, n_type=NotificationType.POST_LIKE,
                target_id=post_id, target_type='post', title="New like",
                message=(post_data.get('content') or '')[:50]
            )
        return {"is_liked": is_liked, "likes": likes}

    def add_comment(self, post_id: str, user_id: str, content: str) -> Dict[str, Any]:
        """Stores a comment under the post and bumps the post's `comments` counter atomically."""
        author = self._author_snapshot(user_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _add_in_transaction(transaction, post_id, user_id, content):
            post_ref = self.posts_ref.document(post_id)
            post_doc = post_ref.get(transaction=transaction)
            if not post_doc.exists:
                raise NotFoundError("Post not found.")

            comment = PostComment(
                comment_id=str(uuid.uuid4()),
                post_id=post_id,
                content=content,
                user_id=user_id,
                user_display_name=author.get('display_name') or 'Anonymous',
                user_photo_url=author.get('photo_url')
            )
            comment_data = DateTimeUtils.for_firestore(asdict(comment))
            transaction.set(post_ref.collection('comments').document(comment.comment_id), comment_data)
            transaction.update(post_ref, {'comments': firestore.Increment(1)})
            return comment_data, post_doc.to_dict()

        comment_data, post_data = _add_in_transaction(transaction, post_id, user_id, content)

        if self.notification_service:
            self.notification_service.create_notification(
                recipient_id=post_data.get('user_id'), sender_id=user_id, n_type=NotificationType.POST_COMMENT,
                target_id=post_id, target_type='post', title="New comment", message=content[:50]
            )
        return comment_data

    def get_comments(self, post_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Oldest first, like a conversation."""
        post_ref = self.posts_ref.document(post_id)
        if not post_ref.get().exists:
            raise NotFoundError("Post not found.")
        docs = post_ref.collection('comments').order_by('created_at').limit(limit).stream()
        return [doc.to_dict() for doc in docs]
