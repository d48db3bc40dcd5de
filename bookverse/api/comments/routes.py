# bookverse/api/comments/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.comments.schemas import CommentCreateSchema, CommentResponseSchema, SentimentSummarySchema
from bookverse.core.exceptions import NotFoundError

comments_bp = Blueprint('comments_bp', __name__)


@comments_bp.route('/<string:book_id>/pages/<int:page>/comments', methods=['POST'])
@jwt_required()
def create_comment(book_id: str, page: int):
    """
    Comments on one page of a book.
    The comment is tagged with a sentiment label before it is stored.
    """
    comment_service = current_app.services['comments']
    user_id = get_jwt_identity()
    try:
        data = CommentCreateSchema().load(request.get_json() or {})
        new_comment = comment_service.create_comment(book_id, page, user_id, data['text'])
        return jsonify(CommentResponseSchema().dump(new_comment)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PAGE", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"Comment creation error (book_id: {book_id}, page: {page}): {e}", exc_info=True)
        return jsonify({"error_code": "COMMENT_CREATION_FAILED", "message": "Could not create the comment."}), 500


@comments_bp.route('/<string:book_id>/pages/<int:page>/comments', methods=['GET'])
@jwt_required(optional=True)
def get_page_comments(book_id: str, page: int):
    comment_service = current_app.services['comments']
    comments = comment_service.get_page_comments(book_id, page, get_jwt_identity())
    return jsonify({"comments": CommentResponseSchema(many=True).dump(comments)}), 200


@comments_bp.route('/<string:book_id>/pages/<int:page>/sentiment', methods=['GET'])
def get_page_sentiment(book_id: str, page: int):
    comment_service = current_app.services['comments']
    summary = comment_service.get_page_sentiment(book_id, page)
    return jsonify(SentimentSummarySchema().dump(summary.to_dict())), 200


@comments_bp.route('/<string:book_id>/sentiment', methods=['GET'])
def get_book_sentiment(book_id: str):
    comment_service = current_app.services['comments']
    summary = comment_service.get_book_sentiment(book_id)
    return jsonify(SentimentSummarySchema().dump(summary.to_dict())), 200


@comments_bp.route('/<string:book_id>/comments/<string:comment_id>/like', methods=['POST'])
@jwt_required()
def toggle_comment_like(book_id: str, comment_id: str):
    comment_service = current_app.services['comments']
    try:
        result = comment_service.toggle_comment_like(get_jwt_identity(), book_id, comment_id)
        return jsonify(result), 200
    except NotFoundError as e:
        return jsonify({"error_code": "COMMENT_NOT_FOUND", "message": str(e)}), 404


@comments_bp.route('/<string:book_id>/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(book_id: str, comment_id: str):
    comment_service = current_app.services['comments']
    try:
        comment_service.delete_comment(get_jwt_identity(), book_id, comment_id)
        return Response(status=204)
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
