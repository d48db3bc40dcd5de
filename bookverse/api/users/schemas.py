# bookverse/api/users/schemas.py
from marshmallow import Schema, fields, validate


class UserProfileResponseSchema(Schema):
    """The signed-in user's own profile (GET /api/users/me)."""
    uid = fields.Str(required=True, dump_only=True)
    email = fields.Str()
    display_name = fields.Str(allow_none=True)
    photo_url = fields.Str(allow_none=True)
    bio = fields.Str(allow_none=True)
    favorite_genres = fields.List(fields.Str())
    friends = fields.List(fields.Str())
    following_count = fields.Int()
    followers_count = fields.Int()
    books_read = fields.Int()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class UserPublicResponseSchema(Schema):
    """
    GET /api/users/{uid}
    Public view of another reader. Email and friend list are left out.
    """
    uid = fields.Str(required=True, dump_only=True)
    display_name = fields.Str(allow_none=True)
    photo_url = fields.Str(allow_none=True)
    bio = fields.Str(allow_none=True)
    favorite_genres = fields.List(fields.Str())
    books_read = fields.Int()
    friend_count = fields.Int(dump_only=True)
    is_friend = fields.Bool(dump_only=True, dump_default=False)


class UserProfileUpdateSchema(Schema):
    """PATCH /api/users/me. Counters and identity fields cannot be set here."""
    display_name = fields.Str(validate=validate.Length(min=1, max=50))
    photo_url = fields.URL(allow_none=True)
    bio = fields.Str(allow_none=True, validate=validate.Length(max=500, error="Bio cannot exceed 500 characters."))
    favorite_genres = fields.List(fields.Str(validate=validate.Length(min=1, max=40)), validate=validate.Length(max=20))


class ReadingProgressSchema(Schema):
    """PUT /api/users/me/progress/{book_id}"""
    current_page = fields.Int(required=True, validate=validate.Range(min=1))
    total_pages = fields.Int(required=True, validate=validate.Range(min=1))
    last_updated = fields.DateTime(dump_only=True)
