# bookverse/api/friends/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.friends.schemas import FriendRequestCreateSchema, FriendRequestResponseSchema, FriendSchema
from bookverse.core.exceptions import NotFoundError, ConflictError

friends_bp = Blueprint('friends_bp', __name__)


@friends_bp.route('', methods=['GET'])
@jwt_required()
def list_friends():
    friend_service = current_app.services['friends']
    friends = friend_service.list_friends(get_jwt_identity())
    return jsonify({"friends": FriendSchema(many=True).dump(friends)}), 200


@friends_bp.route('/requests', methods=['POST'])
@jwt_required()
def send_friend_request():
    friend_service = current_app.services['friends']
    user_id = get_jwt_identity()
    try:
        data = FriendRequestCreateSchema().load(request.get_json() or {})
        created = friend_service.send_request(user_id, data['to_user_id'])
        return jsonify(FriendRequestResponseSchema().dump(created)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "FRIEND_REQUEST_CONFLICT", "message": str(e)}), 409


@friends_bp.route('/requests/incoming', methods=['GET'])
@jwt_required()
def get_incoming_requests():
    friend_service = current_app.services['friends']
    requests_ = friend_service.get_incoming_requests(get_jwt_identity())
    return jsonify({"requests": FriendRequestResponseSchema(many=True).dump(requests_)}), 200


@friends_bp.route('/requests/outgoing', methods=['GET'])
@jwt_required()
def get_outgoing_requests():
    friend_service = current_app.services['friends']
    requests_ = friend_service.get_outgoing_requests(get_jwt_identity())
    return jsonify({"requests": FriendRequestResponseSchema(many=True).dump(requests_)}), 200


@friends_bp.route('/requests/<string:request_id>/accept', methods=['POST'])
@jwt_required()
def accept_friend_request(request_id: str):
    friend_service = current_app.services['friends']
    try:
        accepted = friend_service.accept_request(get_jwt_identity(), request_id)
        return jsonify({"message": "Friend request accepted.", "friend_id": accepted['from_user_id']}), 200
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "REQUEST_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Friend request accept error (request_id: {request_id}): {e}", exc_info=True)
        return jsonify({"error_code": "ACCEPT_FAILED", "message": "Could not accept the friend request."}), 500


@friends_bp.route('/requests/<string:request_id>/decline', methods=['POST'])
@jwt_required()
def decline_friend_request(request_id: str):
    friend_service = current_app.services['friends']
    try:
        friend_service.decline_request(get_jwt_identity(), request_id)
        return Response(status=204)
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "REQUEST_NOT_FOUND", "message": str(e)}), 404


@friends_bp.route('/<string:friend_uid>', methods=['DELETE'])
@jwt_required()
def remove_friend(friend_uid: str):
    friend_service = current_app.services['friends']
    try:
        friend_service.remove_friend(get_jwt_identity(), friend_uid)
        return Response(status=204)
    except NotFoundError as e:
        return jsonify({"error_code": "FRIEND_NOT_FOUND", "message": str(e)}), 404
