from flask import Blueprint, request, current_app
from flasgger import swag_from

from ...errors import AlreadyVoted, StorageFailure
from ...extensions import db
from ...repositories.vote_repository import VoteRepository
from ...schemas.vote import VoteSubmitSchema, VoteStatusSchema, VoteReceiptSchema
from ...services.voter_identity import derive_voter_identity, network_origin, request_visitor_id
from ...services.vote_submission import VoteFlow
from ...utils.audit import safe_audit
from ...utils.validation import validate_or_abort

voting_bp = Blueprint("voting", __name__)
vote_submit_schema = VoteSubmitSchema()
vote_status_schema = VoteStatusSchema()
vote_receipt_schema = VoteReceiptSchema()


def new_vote_flow() -> VoteFlow:
    return VoteFlow(VoteRepository(db.session), current_app.config["VOTER_HASH_SECRET"])


@voting_bp.get("/<string:share_token>/vote/status")
@swag_from({
    "tags": ["Voting"],
    "summary": "Check whether this device already voted on the session",
    "description": (
        "The visitor id comes from the browser fingerprint (query `visitor_id` or "
        "header `X-Visitor-Id`). Without one a fallback id is issued; send it back "
        "with the vote."
    ),
    "parameters": [
        {"in": "query", "name": "visitor_id", "required": False, "type": "string"},
    ],
    "responses": {
        200: {"description": "OK"},
        404: {"description": "NOT_FOUND"},
        410: {"description": "EXPIRED"},
    },
})
def vote_status(share_token):
    identity = derive_voter_identity(request_visitor_id(request))
    flow = new_vote_flow()

    try:
        flow.load(share_token, identity, network_origin(request))
        has_voted = False
    except AlreadyVoted:
        has_voted = True

    return vote_status_schema.dump({
        "has_voted": has_voted,
        "visitor_id": identity.visitor_id,
        "identity_source": identity.source,
    }), 200


@voting_bp.post("/<string:share_token>/vote")
@swag_from({
    "tags": ["Voting"],
    "summary": "Submit an anonymous rating (one per device per session)",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "score_courage": {"type": "number", "example": 7},
                "score_honesty": {"type": "number", "example": 8},
                "score_loyalty": {"type": "number", "example": 6},
                "score_work_ethic": {"type": "number", "example": 9},
                "score_discipline": {"type": "number", "example": 7.5},
                "verdict": {"type": "string", "enum": ["approve", "reject"]},
                "visitor_id": {"type": "string", "example": "opaque-browser-fingerprint"},
            },
            "required": ["score_courage", "score_honesty", "score_loyalty", "score_work_ethic", "score_discipline"],
        },
    }],
    "responses": {
        201: {"description": "Vote recorded"},
        400: {"description": "INPUT_INVALID"},
        404: {"description": "NOT_FOUND"},
        409: {"description": "ALREADY_VOTED"},
        410: {"description": "EXPIRED"},
        503: {"description": "STORAGE_ERROR (retryable)"},
    },
})
def submit_vote(share_token):
    raw = request.get_json(silent=True) or {}
    # Scores are checked before any storage access
    payload = validate_or_abort(vote_submit_schema, raw)

    identity = derive_voter_identity(request_visitor_id(request, payload))
    flow = new_vote_flow()

    try:
        flow.load(share_token, identity, network_origin(request))
        vote = flow.submit(VoteSubmitSchema.scores_of(payload), payload.get("verdict"))
    except AlreadyVoted:
        current_app.logger.info("Duplicate vote attempt on session %s", share_token)
        safe_audit(
            action="VOTE_DUPLICATE_ATTEMPT",
            entity_type="VOTE",
            details={"share_token": share_token, "identity_source": identity.source},
        )
        raise
    except StorageFailure:
        current_app.logger.warning("Vote storage failed on session %s", share_token)
        raise

    safe_audit(
        action="VOTE_SUBMITTED",
        entity_type="VOTE",
        entity_id=str(vote.id),
        details={"share_token": share_token, "identity_source": identity.source},
    )

    return vote_receipt_schema.dump({
        "message": "Vote recorded",
        "id": vote.id,
        "share_token": share_token,
        "average_score": vote.average_score,
        "verdict": vote.verdict,
        "identity_source": vote.identity_source,
    }), 201
