from flask import Blueprint, current_app, redirect, render_template, request, url_for

from ..errors import AlreadyVoted, InputInvalid, StorageFailure, VotingError
from ..extensions import db
from ..questions import QUESTIONS, SCORE_DEFAULT, SCORE_MAX, SCORE_MIN, SCORE_STEP
from ..repositories.vote_repository import VoteRepository
from ..schemas.vote import VoteSubmitSchema
from ..services.session_lookup import resolve_session
from ..services.voter_identity import derive_voter_identity, network_origin, request_visitor_id
from ..services.vote_submission import VoteFlow
from ..utils.audit import safe_audit
from ..utils.validation import validate_or_abort

pages_bp = Blueprint("pages", __name__)
vote_form_schema = VoteSubmitSchema()


def _render_error(error: VotingError):
    return render_template("error.html", error=error), error.status


def _render_form(resolved, scores=None, verdict=None, visitor_id=None, error=None, status=200):
    return render_template(
        "vote.html",
        subject=resolved,
        questions=QUESTIONS,
        scores=scores or {q.key: SCORE_DEFAULT for q in QUESTIONS},
        verdict=verdict,
        visitor_id=visitor_id or "",
        error=error,
        score_min=SCORE_MIN,
        score_max=SCORE_MAX,
        score_step=SCORE_STEP,
    ), status


def _form_payload() -> dict:
    # Empty form fields mean "not provided"
    return {key: value for key, value in request.form.items() if value != ""}


@pages_bp.get("/thank-you")
def thank_you():
    return render_template("thank_you.html")


@pages_bp.get("/<string:share_token>")
def vote_page(share_token):
    try:
        resolved = resolve_session(share_token)
    except VotingError as e:
        return _render_error(e)
    return _render_form(resolved)


@pages_bp.post("/<string:share_token>")
def submit_vote_form(share_token):
    try:
        resolved = resolve_session(share_token)
    except VotingError as e:
        return _render_error(e)

    raw = _form_payload()
    try:
        payload = validate_or_abort(vote_form_schema, raw)
    except InputInvalid as e:
        return _render_form(
            resolved,
            scores={q.key: raw.get(q.key, SCORE_DEFAULT) for q in QUESTIONS},
            verdict=raw.get("verdict"),
            visitor_id=raw.get("visitor_id"),
            error=e,
            status=e.status,
        )

    identity = derive_voter_identity(request_visitor_id(request, payload))
    flow = VoteFlow(VoteRepository(db.session), current_app.config["VOTER_HASH_SECRET"])

    try:
        flow.load(share_token, identity, network_origin(request))
        vote = flow.submit(VoteSubmitSchema.scores_of(payload), payload.get("verdict"))
    except AlreadyVoted as e:
        return _render_error(e)
    except StorageFailure as e:
        # Keep the form filled in and the submit action enabled
        return _render_form(
            resolved,
            scores=VoteSubmitSchema.scores_of(payload),
            verdict=payload.get("verdict"),
            visitor_id=identity.visitor_id,
            error=e,
            status=e.status,
        )
    except VotingError as e:
        return _render_error(e)

    safe_audit(
        action="VOTE_SUBMITTED",
        entity_type="VOTE",
        entity_id=str(vote.id),
        details={"share_token": share_token, "identity_source": identity.source, "via": "page"},
    )
    return redirect(url_for("pages.thank_you"))
