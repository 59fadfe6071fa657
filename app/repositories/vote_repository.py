"""
Vote persistence.

Only digests of the device and network identifiers reach this layer.
"""
from typing import Mapping, Optional

from sqlalchemy import func

from ..models.vote import Vote
from ..models.voting_session import VotingSession


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, session):
        self.session = session

    def lock_session(self, voting_session_id) -> Optional[VotingSession]:
        """
        Load the session row with a write lock held until commit or rollback.

        Concurrent votes on one session queue here, so each recomputes the
        stored aggregates after the previous one committed.
        """
        return self.session.get(
            VotingSession, voting_session_id, with_for_update=True, populate_existing=True
        )

    def exists(self, voting_session_id, device_hash: str) -> bool:
        """Check if a vote exists for (session, device hash)."""
        count = (
            self.session.query(func.count(Vote.id))
            .filter(
                Vote.voting_session_id == voting_session_id,
                Vote.voter_fingerprint_hash == device_hash,
            )
            .scalar()
        )
        return (count or 0) > 0

    def insert(
        self,
        voting_session_id,
        device_hash: str,
        network_hash: str,
        identity_source: str,
        scores: Mapping[str, float],
        average_score: float,
        verdict: Optional[str] = None,
    ) -> Vote:
        """
        Stage a vote and flush it so storage constraints fire now.

        Raises ``IntegrityError`` when the (session, device hash) pair already
        has a vote.
        """
        vote = Vote(
            voting_session_id=voting_session_id,
            voter_fingerprint_hash=device_hash,
            voter_ip_hash=network_hash,
            identity_source=identity_source,
            average_score=average_score,
            verdict=verdict,
            **scores,
        )
        self.session.add(vote)
        self.session.flush()
        return vote

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
