import uuid
from datetime import timedelta
from ..extensions import db
from ..utils.clock import utcnow

DEFAULT_TTL = timedelta(hours=72)


class VotingSession(db.Model):
    __tablename__ = "voting_sessions"

    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_EXPIRED = "expired"
    VALID_STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_EXPIRED)

    id = db.Column(db.Uuid, primary_key=True, default=uuid.uuid4)
    user_id = db.Column(db.Uuid, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Public token used in the share link; never the internal id
    share_token = db.Column(db.String(32), nullable=False, unique=True, index=True)

    photo_url = db.Column(db.String(512), nullable=True)
    full_name = db.Column(db.String(120), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Aggregates, refreshed after every accepted vote
    total_votes = db.Column(db.Integer, nullable=False, default=0)
    average_score = db.Column(db.Float, nullable=True)
    approval_rate = db.Column(db.Float, nullable=True)
    score_courage = db.Column(db.Float, nullable=True)
    score_honesty = db.Column(db.Float, nullable=True)
    score_loyalty = db.Column(db.Float, nullable=True)
    score_work_ethic = db.Column(db.Float, nullable=True)
    score_discipline = db.Column(db.Float, nullable=True)

    votes = db.relationship("Vote", backref="session", lazy="dynamic")

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active', 'completed', 'expired')",
            name="status",
        ),
    )

    @staticmethod
    def expiry_for(created_at, ttl: timedelta = DEFAULT_TTL):
        return created_at + ttl

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def complete(self):
        if self.status != self.STATUS_ACTIVE:
            raise ValueError("Only active sessions can be completed")
        self.status = self.STATUS_COMPLETED
