# bookverse/api/auth/schemas.py
from marshmallow import Schema, fields, validate


class FirebaseLoginSchema(Schema):
    """Body of POST /api/auth/firebase."""
    id_token = fields.Str(
        required=True,
        validate=validate.Length(min=1),
        metadata={"description": "Firebase Auth ID token from the client SDK"}
    )


class LogoutRequestSchema(Schema):
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
