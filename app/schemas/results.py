from marshmallow import Schema, fields


class DimensionScoresSchema(Schema):
    score_courage = fields.Float(allow_none=True)
    score_honesty = fields.Float(allow_none=True)
    score_loyalty = fields.Float(allow_none=True)
    score_work_ethic = fields.Float(allow_none=True)
    score_discipline = fields.Float(allow_none=True)


class SessionResultsSchema(Schema):
    session_id = fields.UUID(required=True)
    status = fields.Str(required=True)
    expires_at = fields.DateTime(required=True)
    total_votes = fields.Int(required=True)
    average_score = fields.Float(allow_none=True)
    approval_rate = fields.Float(allow_none=True)
    scores = fields.Nested(DimensionScoresSchema, required=True)
