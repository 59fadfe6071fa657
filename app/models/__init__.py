from .user import User  # noqa: F401
from .token_blocklist import TokenBlocklist  # noqa: F401
from .voting_session import VotingSession  # noqa: F401
from .vote import Vote  # noqa: F401
from .audit_log import AuditLog  # noqa: F401

# Import ALL models so SQLAlchemy registers them

__all__ = [
    "User",
    "VotingSession",
    "Vote",
    "AuditLog",
    "TokenBlocklist",
]
