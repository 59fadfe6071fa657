from marshmallow import Schema, fields, validate, ValidationError

from ..models.vote import Vote
from ..questions import SCORE_KEYS
from ..services.vote_submission import score_error


def _check_score(value):
    problem = score_error(value)
    if problem:
        raise ValidationError(problem)


def _score_field():
    return fields.Float(required=True, validate=_check_score)


class VoteSubmitSchema(Schema):
    score_courage = _score_field()
    score_honesty = _score_field()
    score_loyalty = _score_field()
    score_work_ethic = _score_field()
    score_discipline = _score_field()
    verdict = fields.Str(required=False, allow_none=True, validate=validate.OneOf(Vote.VALID_VERDICTS))
    # Opaque id from the browser fingerprint, or a previously issued fallback id
    visitor_id = fields.Str(required=False, allow_none=True, validate=validate.Length(max=128))

    @staticmethod
    def scores_of(data: dict) -> dict:
        return {key: data[key] for key in SCORE_KEYS}


class VoteStatusSchema(Schema):
    has_voted = fields.Bool(required=True)
    visitor_id = fields.Str(required=True)
    identity_source = fields.Str(required=True)


class VoteReceiptSchema(Schema):
    message = fields.Str(required=True)
    vote_id = fields.UUID(attribute="id")
    share_token = fields.Str()
    average_score = fields.Float()
    verdict = fields.Str(allow_none=True)
    identity_source = fields.Str()
