# bookverse/api/chat/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.chat.schemas import (
    MessageCreateSchema,
    MessageResponseSchema,
    RecommendationResponseSchema,
    RecommendationShareSchema
)
from bookverse.core.exceptions import NotFoundError, ConflictError
from bookverse.services.openai_service import RecommendationError

chat_bp = Blueprint('chat_bp', __name__)


@chat_bp.route('/<string:other_uid>/messages', methods=['POST'])
@jwt_required()
def send_message(other_uid: str):
    chat_service = current_app.services['chat']
    try:
        data = MessageCreateSchema().load(request.get_json() or {})
        message = chat_service.send_message(get_jwt_identity(), other_uid, data['text'].strip())
        return jsonify(MessageResponseSchema().dump(message)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "INVALID_RECIPIENT", "message": str(e)}), 400


@chat_bp.route('/<string:other_uid>/messages', methods=['GET'])
@jwt_required()
def get_messages(other_uid: str):
    chat_service = current_app.services['chat']
    limit = min(request.args.get('limit', 50, type=int), 200)
    messages = chat_service.get_messages(get_jwt_identity(), other_uid, limit)
    return jsonify({"messages": MessageResponseSchema(many=True).dump(messages)}), 200


@chat_bp.route('/<string:other_uid>/messages/<string:message_id>', methods=['DELETE'])
@jwt_required()
def unsend_message(other_uid: str, message_id: str):
    chat_service = current_app.services['chat']
    try:
        chat_service.unsend_message(get_jwt_identity(), other_uid, message_id)
        return '', 204
    except NotFoundError as e:
        return jsonify({"error_code": "MESSAGE_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403


@chat_bp.route('/<string:other_uid>/recommendations', methods=['POST'])
@jwt_required()
def request_recommendations(other_uid: str):
    chat_service = current_app.services['chat']
    try:
        result = chat_service.request_recommendations(get_jwt_identity(), other_uid)
        return jsonify(RecommendationResponseSchema().dump(result)), 200
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "INVALID_RECIPIENT", "message": str(e)}), 400
    except ValueError as e:
        return jsonify({"error_code": "NO_RECENT_MESSAGES", "message": str(e)}), 400
    except RecommendationError as e:
        logging.error(f"Recommendation failed (other_uid: {other_uid}): {e}", exc_info=True)
        return jsonify({"error_code": "RECOMMENDATION_FAILED", "message": str(e)}), 502


@chat_bp.route('/<string:other_uid>/recommendations/share', methods=['POST'])
@jwt_required()
def share_recommendations(other_uid: str):
    chat_service = current_app.services['chat']
    try:
        data = RecommendationShareSchema().load(request.get_json() or {})
        message = chat_service.share_recommendations(
            get_jwt_identity(), other_uid, data['mood'], data['recommendations']
        )
        return jsonify(MessageResponseSchema().dump(message)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "INVALID_RECIPIENT", "message": str(e)}), 400
