# bookverse/api/notifications/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from bookverse.api.notifications.schemas import NotificationResponseSchema
from bookverse.core.exceptions import NotFoundError

notifications_bp = Blueprint('notifications_bp', __name__)


@notifications_bp.route('', methods=['GET'])
@jwt_required()
def get_notifications():
    """GET /api/notifications?limit=20&unread_only=true"""
    notification_service = current_app.services['notifications']
    user_id = get_jwt_identity()
    limit = min(request.args.get('limit', 20, type=int), 100)
    unread_only = request.args.get('unread_only', 'false').lower() == 'true'

    notifications = notification_service.get_notifications(user_id, limit=limit, unread_only=unread_only)
    return jsonify({
        "notifications": NotificationResponseSchema(many=True).dump(notifications),
        "unread_count": notification_service.count_unread(user_id)
    }), 200


@notifications_bp.route('/<string:notification_id>/read', methods=['POST'])
@jwt_required()
def mark_as_read(notification_id: str):
    notification_service = current_app.services['notifications']
    try:
        notification_service.mark_as_read(get_jwt_identity(), notification_id)
        return jsonify({"notification_id": notification_id, "is_read": True}), 200
    except NotFoundError as e:
        return jsonify({"error_code": "NOTIFICATION_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403


@notifications_bp.route('/read-all', methods=['POST'])
@jwt_required()
def mark_all_as_read():
    notification_service = current_app.services['notifications']
    updated = notification_service.mark_all_as_read(get_jwt_identity())
    return jsonify({"updated": updated}), 200


@notifications_bp.route('/<string:notification_id>', methods=['DELETE'])
@jwt_required()
def delete_notification(notification_id: str):
    notification_service = current_app.services['notifications']
    try:
        notification_service.delete_notification(get_jwt_identity(), notification_id)
        return '', 204
    except NotFoundError as e:
        return jsonify({"error_code": "NOTIFICATION_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403


@notifications_bp.route('', methods=['DELETE'])
@jwt_required()
def delete_all_notifications():
    notification_service = current_app.services['notifications']
    deleted = notification_service.delete_all(get_jwt_identity())
    return jsonify({"deleted": deleted}), 200
