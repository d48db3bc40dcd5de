# bookverse/api/books/schemas.py
from marshmallow import Schema, fields, validate


class BookResponseSchema(Schema):
    book_id = fields.Str(required=True)
    title = fields.Str(required=True)
    author = fields.Str(allow_none=True)
    pdf_url = fields.Str(allow_none=True)
    cover_url = fields.Str(allow_none=True)
    publish_year = fields.Int(allow_none=True)
    page_count = fields.Int(allow_none=True)
    comment_count = fields.Int(dump_default=0)


class PageCountSchema(Schema):
    """PATCH /api/books/{book_id}/page-count"""
    page_count = fields.Int(required=True, validate=validate.Range(min=1))
