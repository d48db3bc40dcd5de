# bookverse/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity
)
from marshmallow import ValidationError

from bookverse.api.auth.schemas import FirebaseLoginSchema, LogoutRequestSchema
from bookverse.api.auth.services import InvalidIdTokenError
from bookverse.api.users.schemas import UserProfileResponseSchema

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/firebase', methods=['POST'])
def firebase_login():
    """Exchanges a Firebase ID token for API tokens. Creates the profile on first sign-in."""
    auth_service = current_app.services['auth']
    try:
        validated_data = FirebaseLoginSchema().load(request.get_json() or {})
        claims = auth_service.verify_id_token(validated_data['id_token'])
        profile, is_new_user = auth_service.get_or_create_profile(claims)

        identity = profile['uid']
        return jsonify({
            "access_token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity),
            "is_new_user": is_new_user,
            "user_info": UserProfileResponseSchema().dump(profile)
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except InvalidIdTokenError as e:
        return jsonify({"error_code": "INVALID_ID_TOKEN", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"Firebase login failed: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Sign-in failed."}), 500


@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """Issues a new access token for a valid, non-revoked refresh token."""
    current_user_id = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user_id)
    return jsonify(access_token=new_access_token), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Revokes the given access/refresh pair. Expired tokens are accepted."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json() or {})

        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(
            decoded_access['jti'], decoded_access['exp'],
            decoded_refresh['jti'], decoded_refresh['exp']
        )
        return jsonify({"message": "Logged out."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except (jwt.PyJWTError, KeyError) as e:
        logging.error(f"JWT decode error: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "Invalid token."}), 422
    except Exception as e:
        logging.error(f"Logout failed: {e}", exc_info=True)
        return jsonify({"error_code": "LOGOUT_FAILED", "message": "Logout failed."}), 500
