from marshmallow import Schema, fields


class UserSchema(Schema):
    id = fields.UUID()
    email = fields.Email()
    full_name = fields.Str()
    username = fields.Str(allow_none=True)
    profile_photo_url = fields.Str(allow_none=True)
    is_active = fields.Bool()
    created_at = fields.DateTime()
