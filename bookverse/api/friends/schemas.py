# bookverse/api/friends/schemas.py
from marshmallow import Schema, fields, validate


class FriendRequestCreateSchema(Schema):
    """POST /api/friends/requests"""
    to_user_id = fields.Str(required=True, validate=validate.Length(min=1))


class FriendRequestResponseSchema(Schema):
    request_id = fields.Str(required=True)
    from_user_id = fields.Str(required=True)
    from_user_name = fields.Str()
    from_user_photo = fields.Str(allow_none=True)
    to_user_id = fields.Str(required=True)
    status = fields.Str()
    created_at = fields.DateTime()


class FriendSchema(Schema):
    uid = fields.Str(required=True)
    display_name = fields.Str(allow_none=True)
    photo_url = fields.Str(allow_none=True)
    favorite_genres = fields.List(fields.Str())
