from marshmallow import Schema, fields, validate

from ..extensions import ma


class SessionCreateSchema(Schema):
    full_name = fields.Str(required=True, validate=validate.Length(min=1, max=120))


class SessionReadSchema(ma.Schema):
    """Owner view of a session, including the shareable link."""
    id = fields.UUID()
    share_token = fields.Str()
    share_url = ma.AbsoluteURLFor("pages.vote_page", values=dict(share_token="<share_token>"))
    photo_url = fields.Str(allow_none=True)
    full_name = fields.Str()
    status = fields.Str()
    created_at = fields.DateTime()
    expires_at = fields.DateTime()
    total_votes = fields.Int()
    average_score = fields.Float(allow_none=True)
    approval_rate = fields.Float(allow_none=True)


class PublicSessionSchema(Schema):
    """What a voter sees after a successful lookup."""
    share_token = fields.Str()
    photo_url = fields.Str()
    full_name = fields.Str()
    expires_at = fields.DateTime()
