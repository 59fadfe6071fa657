import logging
import secrets
import string
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models.voting_session import VotingSession
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)

SHARE_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
MAX_TOKEN_ATTEMPTS = 5


def generate_share_token(length: int = 8) -> str:
    return "".join(secrets.choice(SHARE_TOKEN_ALPHABET) for _ in range(length))


def _unused_share_token(length: int) -> str:
    for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
        token = generate_share_token(length)
        if not db.session.query(VotingSession.id).filter_by(share_token=token).first():
            return token
        logger.warning("Share token collision (attempt %d), retrying", attempt)
    raise RuntimeError("Could not allocate a unique share token")


def create_session(owner, full_name: str, photo=None) -> VotingSession:
    """
    Open a new voting session for ``owner`` (72 hours unless configured).

    ``photo`` is an uploaded file; without it the owner's profile photo is
    shown to voters. The caller commits, and discards the stored photo if
    that commit fails.
    """
    config = current_app.config
    share_token = _unused_share_token(config["SHARE_TOKEN_LENGTH"])

    # The file is written only once every query before the commit has run
    photo_url = None
    if photo is not None:
        photo_url = current_app.extensions["photo_storage"].upload(photo, owner.id)

    created_at = utcnow()
    session = VotingSession(
        user_id=owner.id,
        share_token=share_token,
        photo_url=photo_url,
        full_name=full_name,
        status=VotingSession.STATUS_ACTIVE,
        created_at=created_at,
        expires_at=VotingSession.expiry_for(created_at, timedelta(hours=config["SESSION_TTL_HOURS"])),
    )
    db.session.add(session)
    return session
