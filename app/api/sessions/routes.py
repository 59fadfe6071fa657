from flask import Blueprint, request, current_app
from flasgger import swag_from
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import SQLAlchemyError

from ...errors import StorageFailure
from ...extensions import db
from ...models.voting_session import VotingSession
from ...schemas.session import SessionCreateSchema, SessionReadSchema, PublicSessionSchema
from ...schemas.results import SessionResultsSchema
from ...services.aggregation import session_results
from ...services.session_creation import create_session
from ...services.session_lookup import resolve_session
from ...utils.audit import audit_log
from ...utils.rbac import current_user_or_none, owner_required
from ...utils.validation import validate_or_abort

sessions_bp = Blueprint("sessions", __name__)

session_create_schema = SessionCreateSchema()
session_read_schema = SessionReadSchema()
session_read_many_schema = SessionReadSchema(many=True)
public_session_schema = PublicSessionSchema()
results_schema = SessionResultsSchema()


@sessions_bp.post("/")
@jwt_required()
@swag_from({
    "tags": ["Sessions"],
    "security": [{"BearerAuth": []}],
    "summary": "Open a 72-hour voting session",
    "consumes": ["multipart/form-data", "application/json"],
    "parameters": [
        {"in": "formData", "name": "full_name", "type": "string", "required": True},
        {"in": "formData", "name": "photo", "type": "file", "required": False},
    ],
    "responses": {
        201: {"description": "Created; includes the share link"},
        400: {"description": "Validation error"},
        401: {"description": "Unauthorized"},
        503: {"description": "STORAGE_ERROR (retryable)"},
    },
})
def open_session():
    owner = current_user_or_none()
    if not owner or not owner.is_active:
        return {"message": "User inactive or not found"}, 401

    payload = request.form.to_dict() if request.form else (request.get_json(silent=True) or {})
    payload = validate_or_abort(session_create_schema, payload)

    photo = request.files.get("photo")
    if photo is not None and not photo.filename:
        photo = None

    voting_session = None
    try:
        voting_session = create_session(owner, payload["full_name"].strip(), photo=photo)
        db.session.flush()

        audit_log(
            action="SESSION_CREATED",
            entity_type="SESSION",
            entity_id=str(voting_session.id),
            details={"has_photo": bool(voting_session.photo_url)},
        )
        db.session.commit()

    except SQLAlchemyError:
        photo_url = voting_session.photo_url if voting_session is not None else None
        db.session.rollback()
        current_app.extensions["photo_storage"].discard(photo_url)
        current_app.logger.exception("DB error creating voting session")
        raise StorageFailure("Failed to create voting session")

    return {"session": session_read_schema.dump(voting_session)}, 201


@sessions_bp.get("/")
@jwt_required()
@swag_from({
    "tags": ["Sessions"],
    "security": [{"BearerAuth": []}],
    "summary": "List the caller's voting sessions, newest first",
    "responses": {200: {"description": "OK"}, 401: {"description": "Unauthorized"}},
})
def list_sessions():
    owner = current_user_or_none()
    if not owner:
        return {"message": "User not found"}, 401

    sessions = (
        VotingSession.query
        .filter_by(user_id=owner.id)
        .order_by(VotingSession.created_at.desc())
        .all()
    )
    return {"count": len(sessions), "sessions": session_read_many_schema.dump(sessions)}, 200


@sessions_bp.post("/<uuid:session_id>/complete")
@jwt_required()
@owner_required
@swag_from({
    "tags": ["Sessions"],
    "security": [{"BearerAuth": []}],
    "summary": "Close a session before it expires",
    "responses": {
        200: {"description": "Completed"},
        403: {"description": "Not the owner"},
        404: {"description": "Session not found"},
        409: {"description": "Session is not active"},
    },
})
def complete_session(voting_session):
    try:
        voting_session.complete()
    except ValueError as e:
        return {"message": str(e)}, 409

    try:
        audit_log(action="SESSION_COMPLETED", entity_type="SESSION", entity_id=str(voting_session.id))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error completing voting session")
        return {"message": "Failed to complete voting session"}, 500

    return {"session": session_read_schema.dump(voting_session)}, 200


@sessions_bp.get("/<uuid:session_id>/results")
@jwt_required()
@owner_required
@swag_from({
    "tags": ["Sessions"],
    "security": [{"BearerAuth": []}],
    "summary": "Aggregated scores of a session (owner only)",
    "description": "Vote count, overall average, per-dimension averages and approval rate.",
    "responses": {
        200: {"description": "Results"},
        403: {"description": "Not the owner"},
        404: {"description": "Session not found"},
        500: {"description": "Server error"},
    },
})
def get_results(voting_session):
    try:
        results = session_results(voting_session.id)
    except SQLAlchemyError:
        current_app.logger.exception("DB error aggregating results")
        return {"message": "Failed to fetch results"}, 500

    status = voting_session.status
    if status == VotingSession.STATUS_ACTIVE and voting_session.is_expired():
        status = VotingSession.STATUS_EXPIRED

    return results_schema.dump({
        "session_id": voting_session.id,
        "status": status,
        "expires_at": voting_session.expires_at,
        **results,
    }), 200


@sessions_bp.get("/<string:share_token>")
@swag_from({
    "tags": ["Sessions"],
    "summary": "Resolve a share token to a votable session",
    "responses": {
        200: {"description": "Session photo, display name and expiry"},
        404: {"description": "NOT_FOUND"},
        410: {"description": "EXPIRED"},
        422: {"description": "MISSING_PHOTO"},
    },
})
def lookup_session(share_token):
    resolved = resolve_session(share_token)
    return {"session": public_session_schema.dump(resolved)}, 200
