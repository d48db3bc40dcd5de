# bookverse/api/posts/schemas.py
from marshmallow import Schema, fields, validate


class PostCreateSchema(Schema):
    """Validates the body of POST /api/posts."""
    content = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    book_title = fields.Str(allow_none=True, validate=validate.Length(max=200))
    book_author = fields.Str(allow_none=True, validate=validate.Length(max=200))
    genre = fields.Str(allow_none=True, validate=validate.Length(max=40))


class PostResponseSchema(Schema):
    """Post as returned to clients. `score` is only present on feed entries."""
    post_id = fields.Str(dump_only=True)
    user_id = fields.Str(required=True)
    user_display_name = fields.Str()
    user_photo_url = fields.Str(allow_none=True)
    content = fields.Str(required=True)
    book_title = fields.Str(allow_none=True)
    book_author = fields.Str(allow_none=True)
    genre = fields.Str(allow_none=True)
    likes = fields.Int()
    comments = fields.Int()
    created_at = fields.DateTime(allow_none=True)
    score = fields.Float(dump_only=True)
    is_liked = fields.Bool(dump_only=True, dump_default=False)


class PostCommentCreateSchema(Schema):
    """POST /api/posts/{post_id}/comments"""
    content = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="Comments must be 1-1000 characters."))


class PostCommentResponseSchema(Schema):
    comment_id = fields.Str(required=True)
    post_id = fields.Str(required=True)
    content = fields.Str(required=True)
    user_id = fields.Str(required=True)
    user_display_name = fields.Str()
    user_photo_url = fields.Str(allow_none=True)
    created_at = fields.DateTime()
