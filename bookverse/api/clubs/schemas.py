# bookverse/api/clubs/schemas.py
from marshmallow import Schema, fields, validate

from bookverse.api.comments.schemas import SentimentSummarySchema


class ClubCreateSchema(Schema):
    """POST /api/clubs"""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=80))
    description = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    image_url = fields.Url(allow_none=True)
    book_id = fields.Str(allow_none=True)


class ClubResponseSchema(Schema):
    club_id = fields.Str(required=True)
    name = fields.Str(required=True)
    description = fields.Str(allow_none=True)
    image_url = fields.Str(allow_none=True)
    book_id = fields.Str(allow_none=True)
    created_by = fields.Str()
    created_by_display_name = fields.Str(allow_none=True)
    member_count = fields.Int()
    created_at = fields.DateTime()
    is_member = fields.Bool(dump_only=True)
    book_sentiment = fields.Nested(SentimentSummarySchema, dump_only=True)


class MembershipResponseSchema(Schema):
    club_id = fields.Str()
    is_member = fields.Bool()
    member_count = fields.Int()


class ClubPostCreateSchema(Schema):
    """POST /api/clubs/{club_id}/posts"""
    body = fields.Str(required=True, validate=validate.Length(min=1, max=2000))
    page_number = fields.Int(allow_none=True, validate=validate.Range(min=1))


class ClubPostResponseSchema(Schema):
    post_id = fields.Str(required=True)
    club_id = fields.Str(required=True)
    body = fields.Str(required=True)
    author_id = fields.Str()
    author_name = fields.Str()
    page_number = fields.Int(allow_none=True)
    created_at = fields.DateTime()
