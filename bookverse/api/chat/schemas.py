# bookverse/api/chat/schemas.py
from marshmallow import Schema, fields, validate


class MessageCreateSchema(Schema):
    """POST /api/chat/{other_uid}/messages"""
    text = fields.Str(required=True, validate=validate.Length(min=1, max=2000))


class MessageResponseSchema(Schema):
    message_id = fields.Str(required=True)
    conversation_id = fields.Str(required=True)
    sender_id = fields.Str(required=True)
    sender_name = fields.Str()
    recipient_id = fields.Str(allow_none=True)
    text = fields.Str(required=True)
    kind = fields.Str()
    created_at = fields.DateTime()


class BookRecommendationSchema(Schema):
    title = fields.Str(required=True)
    author = fields.Str(allow_none=True, load_default=None)
    rating = fields.Float(allow_none=True, load_default=None)
    availability = fields.Str(allow_none=True, load_default=None)


class RecommendationResponseSchema(Schema):
    mood = fields.Str(required=True)
    recommendations = fields.List(fields.Nested(BookRecommendationSchema), required=True)


class RecommendationShareSchema(Schema):
    """POST /api/chat/{other_uid}/recommendations/share: the list the caller was shown."""
    mood = fields.Str(required=True)
    recommendations = fields.List(
        fields.Nested(BookRecommendationSchema), required=True, validate=validate.Length(min=1, max=10)
    )
