from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from ..errors import SessionNotFound, SessionExpired, MissingPhoto
from ..extensions import db
from ..models.user import User
from ..models.voting_session import VotingSession
from ..utils.clock import utcnow


@dataclass(frozen=True)
class ResolvedSession:
    id: UUID
    share_token: str
    photo_url: str
    full_name: str
    expires_at: datetime
    status: str


def resolve_session(share_token: str, now: Optional[datetime] = None) -> ResolvedSession:
    """
    Resolve a public share token to a votable session.

    The session photo falls back to the owner's profile photo. The expiry
    timestamp is checked against ``now`` even when the stored status still
    reads ``active``; a stored non-active status also closes voting.
    """
    row = (
        db.session.query(VotingSession, User.profile_photo_url)
        .outerjoin(User, User.id == VotingSession.user_id)
        .filter(VotingSession.share_token == share_token)
        .first()
    )
    if row is None:
        raise SessionNotFound()

    session, profile_photo_url = row
    if session.status != VotingSession.STATUS_ACTIVE or session.is_expired(now or utcnow()):
        raise SessionExpired()

    photo_url = session.photo_url or profile_photo_url
    if not photo_url:
        raise MissingPhoto()

    return ResolvedSession(
        id=session.id,
        share_token=session.share_token,
        photo_url=photo_url,
        full_name=session.full_name,
        expires_at=session.expires_at,
        status=session.status,
    )
