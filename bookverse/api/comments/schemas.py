# bookverse/api/comments/schemas.py
from marshmallow import Schema, fields, validate


class CommentCreateSchema(Schema):
    """
    POST /api/books/{book_id}/pages/{page}/comments
    """
    text = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="Comments must be 1-1000 characters."))


class CommentResponseSchema(Schema):
    comment_id = fields.Str(required=True)
    book_id = fields.Str(required=True)
    page = fields.Int(required=True)
    text = fields.Str(required=True)
    user_id = fields.Str(required=True)
    user_display_name = fields.Str(allow_none=True)
    like_count = fields.Int(required=True)
    sentiment = fields.Str(required=True)
    created_at = fields.DateTime(required=True)

    # filled in by the service for the caller
    is_liked = fields.Bool(dump_only=True, dump_default=False)


class SentimentSummarySchema(Schema):
    """Aggregated mood of a page or a whole book."""
    sentiment = fields.Str(required=True)
    average = fields.Float(allow_none=True)
    analyzed_count = fields.Int()
    comment_count = fields.Int()
    counts = fields.Dict(keys=fields.Str(), values=fields.Int())
