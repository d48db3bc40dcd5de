# bookverse/api/books/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from bookverse.api.books.schemas import BookResponseSchema, PageCountSchema
from bookverse.core.exceptions import NotFoundError

books_bp = Blueprint('books_bp', __name__)


@books_bp.route('/search', methods=['GET'])
@jwt_required(optional=True)
def search_book():
    """GET /api/books/search?title=Dracula -> the registered public-domain edition."""
    book_service = current_app.services['books']
    title = request.args.get('title', '', type=str)
    if not title.strip():
        return jsonify({"error_code": "INVALID_QUERY", "message": "'title' query parameter is required."}), 400
    try:
        book = book_service.find_or_register(title)
    except Exception as e:
        logging.error(f"Book search failed (title: {title}): {e}", exc_info=True)
        return jsonify({"error_code": "BOOK_SEARCH_FAILED", "message": "Book search failed."}), 500
    if not book:
        return jsonify({"error_code": "BOOK_NOT_FOUND", "message": f"No public domain PDF found for '{title}'."}), 404
    return jsonify(BookResponseSchema().dump(book)), 200


@books_bp.route('/<string:book_id>', methods=['GET'])
def get_book(book_id: str):
    book_service = current_app.services['books']
    try:
        return jsonify(BookResponseSchema().dump(book_service.get_book(book_id))), 200
    except NotFoundError as e:
        return jsonify({"error_code": "BOOK_NOT_FOUND", "message": str(e)}), 404


@books_bp.route('/<string:book_id>/page-count', methods=['PATCH'])
@jwt_required()
def update_page_count(book_id: str):
    book_service = current_app.services['books']
    try:
        data = PageCountSchema().load(request.get_json() or {})
        book = book_service.update_page_count(book_id, data['page_count'])
        return jsonify(BookResponseSchema().dump(book)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "BOOK_NOT_FOUND", "message": str(e)}), 404
