# bookverse/api/notifications/schemas.py
from marshmallow import Schema, fields


class NotificationSenderSchema(Schema):
    uid = fields.Str()
    display_name = fields.Str(allow_none=True)
    photo_url = fields.Str(allow_none=True)


class NotificationResponseSchema(Schema):
    notification_id = fields.Str(required=True)
    recipient_id = fields.Str()
    sender = fields.Nested(NotificationSenderSchema)
    type = fields.Str(required=True)
    target_id = fields.Str()
    target_type = fields.Str(allow_none=True)
    title = fields.Str(allow_none=True)
    message = fields.Str(allow_none=True)
    is_read = fields.Bool()
    created_at = fields.DateTime()
