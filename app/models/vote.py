import uuid
from ..extensions import db
from ..utils.clock import utcnow


class Vote(db.Model):
    __tablename__ = "votes"

    VERDICT_APPROVE = "approve"
    VERDICT_REJECT = "reject"
    VALID_VERDICTS = (VERDICT_APPROVE, VERDICT_REJECT)

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)

    voting_session_id = db.Column(
        db.Uuid, db.ForeignKey("voting_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Keyed digests only; raw device and network identifiers are never stored
    voter_ip_hash = db.Column(db.String(64), nullable=False)
    voter_fingerprint_hash = db.Column(db.String(64), nullable=False, index=True)
    identity_source = db.Column(db.String(20), nullable=False, default="fingerprint")

    score_courage = db.Column(db.Float, nullable=False)
    score_honesty = db.Column(db.Float, nullable=False)
    score_loyalty = db.Column(db.Float, nullable=False)
    score_work_ethic = db.Column(db.Float, nullable=False)
    score_discipline = db.Column(db.Float, nullable=False)
    average_score = db.Column(db.Float, nullable=False)

    verdict = db.Column(db.String(10), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        # One vote per device per session
        db.UniqueConstraint("voting_session_id", "voter_fingerprint_hash", name="uq_votes_session_fingerprint"),
        db.CheckConstraint(
            "score_courage BETWEEN 1 AND 10 AND score_honesty BETWEEN 1 AND 10 "
            "AND score_loyalty BETWEEN 1 AND 10 AND score_work_ethic BETWEEN 1 AND 10 "
            "AND score_discipline BETWEEN 1 AND 10",
            name="score_range",
        ),
        db.CheckConstraint("verdict IS NULL OR verdict IN ('approve', 'reject')", name="verdict"),
    )

