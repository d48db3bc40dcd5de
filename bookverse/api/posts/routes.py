# bookverse/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.posts.schemas import (
    PostCreateSchema,
    PostResponseSchema,
    PostCommentCreateSchema,
    PostCommentResponseSchema
)
from bookverse.core.exceptions import NotFoundError

posts_bp = Blueprint('posts_bp', __name__)


@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post():
    post_service = current_app.services['posts']
    user_id = get_jwt_identity()
    try:
        data = PostCreateSchema().load(request.get_json() or {})
        new_post = post_service.create_post(user_id, **data)
        return jsonify(PostResponseSchema().dump(new_post)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404


@posts_bp.route('/feed', methods=['GET'])
@jwt_required(optional=True)
def get_feed():
    """Ranked feed. Anonymous callers get recency and engagement ordering only."""
    post_service = current_app.services['posts']
    try:
        feed = post_service.get_feed(get_jwt_identity())
        return jsonify({"posts": PostResponseSchema(many=True).dump(feed)}), 200
    except Exception as e:
        logging.error(f"Feed load failed: {e}", exc_info=True)
        return jsonify({"error_code": "FEED_FETCH_FAILED", "message": "Could not load the feed."}), 500


@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def toggle_post_like(post_id: str):
    post_service = current_app.services['posts']
    try:
        result = post_service.toggle_post_like(get_jwt_identity(), post_id)
        return jsonify(result), 200
    except NotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404


@posts_bp.route('/<string:post_id>/comments', methods=['POST'])
@jwt_required()
def create_post_comment(post_id: str):
    post_service = current_app.services['posts']
    try:
        data = PostCommentCreateSchema().load(request.get_json() or {})
        comment = post_service.add_comment(post_id, get_jwt_identity(), data['content'])
        return jsonify(PostCommentResponseSchema().dump(comment)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": str(e)}), 404


@posts_bp.route('/<string:post_id>/comments', methods=['GET'])
@jwt_required(optional=True)
def get_post_comments(post_id: str):
    post_service = current_app.services['posts']
    limit = min(request.args.get('limit', 50, type=int), 100)
    try:
        comments = post_service.get_comments(post_id, limit)
        return jsonify({"comments": PostCommentResponseSchema(many=True).dump(comments)}), 200
    except NotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
