# bookverse/api/auth/services.py
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Tuple, Optional
from dataclasses import asdict
from firebase_admin import firestore, auth as firebase_auth
from flask import Flask

from bookverse.models.user import UserProfile
from bookverse.utils.datetime_utils import DateTimeUtils


class InvalidIdTokenError(ValueError):
    """The Firebase ID token could not be verified."""


class AuthService:
    def __init__(self):
        self.db = None
        self.users_ref = None
        self.revoked_tokens_ref = None
        self.app: Optional[Flask] = None

    def init_app(self, app: Flask):
        """Called from create_app: binds Firestore and the app."""
        self.db = firestore.client()
        self.users_ref = self.db.collection('users')
        self.revoked_tokens_ref = self.db.collection('revoked_tokens')
        self.app = app

    def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """Checks a Firebase Auth ID token and returns its claims (uid, email, name, picture)."""
        try:
            return firebase_auth.verify_id_token(id_token)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError) as e:
            logging.warning(f"Firebase ID token rejected: {e}")
            raise InvalidIdTokenError("Invalid or expired Firebase ID token.") from e

    def get_or_create_profile(self, claims: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """
        Returns the profile for the token's uid, creating it on first sign-in.

        :return: (profile document, is_new_user)
        """
        uid = claims.get('uid') or claims.get('sub')
        if not uid:
            raise ValueError("Token claims must contain 'uid'.")

        user_ref = self.users_ref.document(uid)
        user_doc = user_ref.get()
        if user_doc.exists:
            return user_doc.to_dict(), False

        email = claims.get('email') or ''
        new_user = UserProfile(
            uid=uid,
            email=email,
            display_name=claims.get('name') or (email.split('@')[0] if email else None),
            photo_url=claims.get('picture')
        )
        user_data = DateTimeUtils.for_firestore(asdict(new_user))
        user_ref.set(user_data)
        logging.info(f"New user profile created (uid: {uid})")
        return user_data, True

    # --- blocklist ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """Stores a revoked token id together with its expiry."""
        try:
            token_data = {
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            }
            self.revoked_tokens_ref.document(jti).set(DateTimeUtils.for_firestore(token_data))
        except Exception as e:
            logging.error(f"Failed to add token to blocklist (jti: {jti}): {e}", exc_info=True)
            raise

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        jti = jwt_payload['jti']
        doc = self.revoked_tokens_ref.document(jti).get()
        return doc.exists

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Revokes both the access and the refresh token."""
        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
        logging.info(f"User logged out. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")


auth_service = AuthService()
