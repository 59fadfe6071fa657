import uuid
from functools import wraps
from flask import abort
from flask_jwt_extended import get_jwt_identity

from ..extensions import db
from ..models.user import User
from ..models.voting_session import VotingSession


def current_user_or_none():
    try:
        user_id = uuid.UUID(str(get_jwt_identity()))
    except ValueError:
        return None
    return db.session.get(User, user_id)


def owner_required(fn):
    """
    Resolve the ``session_id`` URL argument to a session owned by the caller.
    Use with @jwt_required() above it; the view receives ``voting_session``.
    """
    @wraps(fn)
    def wrapper(session_id, *args, **kwargs):
        voting_session = db.session.get(VotingSession, session_id)
        if not voting_session:
            abort(404, description={"code": "NOT_FOUND", "message": "Voting session not found"})
        if str(voting_session.user_id) != str(get_jwt_identity()):
            abort(403, description="Only the session owner can do this")
        return fn(voting_session, *args, **kwargs)
    return wrapper
