# bookverse/api/books/services.py
import logging
from dataclasses import asdict
from firebase_admin import firestore
from typing import Optional, Dict, Any

from bookverse.core.exceptions import NotFoundError
from bookverse.models.club import Book
from bookverse.services.catalog_service import CatalogService
from bookverse.utils.datetime_utils import DateTimeUtils


class BookService:
    """
    Book registry. A title is resolved once through the public catalog and then
    served from the 'books' collection; the Internet Archive identifier is the
    document id.
    """
    def __init__(self, catalog_service: CatalogService):
        self.db = firestore.client()
        self.books_ref = self.db.collection('books')
        self.catalog_service = catalog_service

    def find_or_register(self, title: str) -> Optional[Dict[str, Any]]:
        title = (title or '').strip()
        if not title:
            raise ValueError("A title is required.")

        cached = next(self.books_ref.where('title_lower', '==', title.lower()).limit(1).stream(), None)
        if cached:
            return cached.to_dict()

        match = self.catalog_service.find_public_domain_book(title)
        if not match:
            return None

        book = Book(
            book_id=match['archive_id'],
            title=match['title'],
            author=match['author'],
            pdf_url=match['pdf_url'],
            cover_url=match['cover_url'],
            publish_year=match['publish_year']
        )
        book_data = DateTimeUtils.for_firestore(asdict(book))
        book_data['title_lower'] = title.lower()
        # merge keeps counters (comment_count) already written for this id
        self.books_ref.document(book.book_id).set(book_data, merge=True)
        logging.info(f"Book registered (book_id: {book.book_id}, title: {book.title})")
        return self.books_ref.document(book.book_id).get().to_dict()

    def get_book(self, book_id: str) -> Dict[str, Any]:
        doc = self.books_ref.document(book_id).get()
        if not doc.exists or not doc.to_dict().get('title'):
            raise NotFoundError("Book not found.")
        return doc.to_dict()

    def update_page_count(self, book_id: str, page_count: int) -> Dict[str, Any]:
        """Recorded by the reader once the PDF reports its length."""
        if page_count < 1:
            raise ValueError("page_count must be positive.")
        book_ref = self.books_ref.document(book_id)
        if not book_ref.get().exists:
            raise NotFoundError("Book not found.")
        book_ref.update({'page_count': page_count})
        return book_ref.get().to_dict()
