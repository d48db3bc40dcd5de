# bookverse/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.users.schemas import (
    UserProfileResponseSchema,
    UserPublicResponseSchema,
    UserProfileUpdateSchema,
    ReadingProgressSchema
)
from bookverse.core.exceptions import NotFoundError

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    user_service = current_app.services['users']
    profile = user_service.get_profile(get_jwt_identity())
    if not profile:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "User not found."}), 404
    return jsonify(UserProfileResponseSchema().dump(profile)), 200


@users_bp.route('/me', methods=['PATCH'])
@jwt_required()
def update_my_profile():
    user_service = current_app.services['users']
    user_id = get_jwt_identity()
    try:
        data = UserProfileUpdateSchema().load(request.get_json() or {})
        updated = user_service.update_profile(user_id, data)
        return jsonify(UserProfileResponseSchema().dump(updated)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PROFILE", "message": str(e)}), 400


@users_bp.route('/search', methods=['GET'])
@jwt_required()
def search_users():
    """Readers sharing a favourite genre: GET /api/users/search?genre=Mystery"""
    user_service = current_app.services['users']
    genre = request.args.get('genre', '', type=str)
    limit = min(request.args.get('limit', 20, type=int), 50)
    if not genre.strip():
        return jsonify({"error_code": "INVALID_QUERY", "message": "'genre' query parameter is required."}), 400
    users = user_service.search_by_genre(genre, exclude_uid=get_jwt_identity(), limit=limit)
    return jsonify({"users": UserPublicResponseSchema(many=True).dump(users)}), 200


@users_bp.route('/<string:uid>', methods=['GET'])
@jwt_required(optional=True)
def get_user_profile(uid: str):
    user_service = current_app.services['users']
    try:
        profile = user_service.get_public_profile(uid, viewer_id=get_jwt_identity())
        if not profile:
            return jsonify({"error_code": "USER_NOT_FOUND", "message": "User not found."}), 404
        return jsonify(UserPublicResponseSchema().dump(profile)), 200
    except Exception as e:
        logging.error(f"Profile lookup failed (uid: {uid}): {e}", exc_info=True)
        return jsonify({"error_code": "PROFILE_FETCH_FAILED", "message": "Could not load the profile."}), 500


@users_bp.route('/me/progress/<string:book_id>', methods=['PUT'])
@jwt_required()
def save_reading_progress(book_id: str):
    user_service = current_app.services['users']
    try:
        data = ReadingProgressSchema().load(request.get_json() or {})
        progress = user_service.save_progress(get_jwt_identity(), book_id, data['current_page'], data['total_pages'])
        return jsonify(ReadingProgressSchema().dump(progress)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PROGRESS", "message": str(e)}), 400


@users_bp.route('/me/progress/<string:book_id>', methods=['GET'])
@jwt_required()
def get_reading_progress(book_id: str):
    user_service = current_app.services['users']
    progress = user_service.get_progress(get_jwt_identity(), book_id)
    if not progress:
        return jsonify({"error_code": "PROGRESS_NOT_FOUND", "message": "No progress saved for this book."}), 404
    return jsonify(ReadingProgressSchema().dump(progress)), 200
