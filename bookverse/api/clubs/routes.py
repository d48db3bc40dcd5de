# bookverse/api/clubs/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from bookverse.api.clubs.schemas import (
    ClubCreateSchema,
    ClubResponseSchema,
    MembershipResponseSchema,
    ClubPostCreateSchema,
    ClubPostResponseSchema
)
from bookverse.core.exceptions import NotFoundError, ConflictError

clubs_bp = Blueprint('clubs_bp', __name__)


@clubs_bp.route('', methods=['POST'])
@jwt_required()
def create_club():
    club_service = current_app.services['clubs']
    try:
        data = ClubCreateSchema().load(request.get_json() or {})
        club = club_service.create_club(get_jwt_identity(), **data)
        club['is_member'] = True
        return jsonify(ClubResponseSchema().dump(club)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404


@clubs_bp.route('', methods=['GET'])
@jwt_required(optional=True)
def list_clubs():
    club_service = current_app.services['clubs']
    limit = min(request.args.get('limit', 50, type=int), 100)
    clubs = club_service.list_clubs(limit)
    return jsonify({"clubs": ClubResponseSchema(many=True, exclude=('is_member', 'book_sentiment')).dump(clubs)}), 200


@clubs_bp.route('/<string:club_id>', methods=['GET'])
@jwt_required(optional=True)
def get_club(club_id: str):
    club_service = current_app.services['clubs']
    try:
        club = club_service.get_club(club_id, get_jwt_identity())
        return jsonify(ClubResponseSchema().dump(club)), 200
    except NotFoundError as e:
        return jsonify({"error_code": "CLUB_NOT_FOUND", "message": str(e)}), 404


@clubs_bp.route('/<string:club_id>/join', methods=['POST'])
@jwt_required()
def join_club(club_id: str):
    club_service = current_app.services['clubs']
    try:
        result = club_service.join_club(club_id, get_jwt_identity())
        return jsonify(MembershipResponseSchema().dump(result)), 200
    except NotFoundError as e:
        return jsonify({"error_code": "CLUB_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "ALREADY_MEMBER", "message": str(e)}), 409


@clubs_bp.route('/<string:club_id>/leave', methods=['POST'])
@jwt_required()
def leave_club(club_id: str):
    club_service = current_app.services['clubs']
    try:
        result = club_service.leave_club(club_id, get_jwt_identity())
        return jsonify(MembershipResponseSchema().dump(result)), 200
    except NotFoundError as e:
        return jsonify({"error_code": "CLUB_NOT_FOUND", "message": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error_code": "MEMBERSHIP_CONFLICT", "message": str(e)}), 409


@clubs_bp.route('/<string:club_id>/posts', methods=['POST'])
@jwt_required()
def create_club_post(club_id: str):
    club_service = current_app.services['clubs']
    try:
        data = ClubPostCreateSchema().load(request.get_json() or {})
        post = club_service.create_club_post(club_id, get_jwt_identity(), **data)
        return jsonify(ClubPostResponseSchema().dump(post)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify({"error_code": "CLUB_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403


@clubs_bp.route('/<string:club_id>/posts', methods=['GET'])
@jwt_required(optional=True)
def get_club_posts(club_id: str):
    club_service = current_app.services['clubs']
    limit = min(request.args.get('limit', 50, type=int), 100)
    try:
        posts = club_service.get_club_posts(club_id, limit)
        return jsonify({"posts": ClubPostResponseSchema(many=True).dump(posts)}), 200
    except NotFoundError as e:
        return jsonify({"error_code": "CLUB_NOT_FOUND", "message": str(e)}), 404
