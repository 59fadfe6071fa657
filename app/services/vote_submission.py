"""
Vote submission pipeline.

A ``VoteFlow`` follows one voting page from load to outcome:

    LOADING -> READY -> SUBMITTING -> SUCCESS | ALREADY_VOTED | FAILED

Scores are validated before anything touches storage. The prior-vote read is
kept for a fast answer, but the unique constraint on
(session, device hash) is what makes a vote count exactly once; a violation of
it is reported as ALREADY_VOTED. The session row is locked before that read, so
concurrent votes on one session refresh its stored aggregates one after
another. Other storage errors leave the flow in FAILED, from which the caller
may submit again.
"""
import enum
import logging
import math
from numbers import Real
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import AlreadyVoted, InputInvalid, SessionNotFound, StorageFailure, SubmissionInProgress, VotingError
from ..models.vote import Vote
from ..questions import SCORE_KEYS, SCORE_MAX, SCORE_MIN, SCORE_STEP
from ..utils.clock import utcnow
from .aggregation import mean_score, refresh_session_aggregates
from .session_lookup import resolve_session
from .voter_identity import VoterIdentity, hash_voter

logger = logging.getLogger(__name__)


class FlowState(str, enum.Enum):
    LOADING = "LOADING"
    READY = "READY"
    SUBMITTING = "SUBMITTING"
    SUCCESS = "SUCCESS"
    ALREADY_VOTED = "ALREADY_VOTED"
    FAILED = "FAILED"


def score_error(value) -> Optional[str]:
    """Return why ``value`` is not an acceptable score, or None."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return "Score must be a number."
    value = float(value)
    if not math.isfinite(value):
        return "Score must be a number."
    if value < SCORE_MIN or value > SCORE_MAX:
        return f"Score must be between {SCORE_MIN} and {SCORE_MAX}."
    if not (value / SCORE_STEP).is_integer():
        return f"Score must be a multiple of {SCORE_STEP}."
    return None


def validate_scores(scores) -> dict:
    if not isinstance(scores, Mapping):
        raise InputInvalid(details={"scores": ["Scores must be an object."]})

    errors = {}
    clean = {}
    for key in SCORE_KEYS:
        value = scores.get(key)
        if value is None:
            errors[key] = ["Missing data for required field."]
            continue
        problem = score_error(value)
        if problem:
            errors[key] = [problem]
        else:
            clean[key] = float(value)

    if errors:
        raise InputInvalid(details=errors)
    return clean


def validate_verdict(verdict) -> Optional[str]:
    if verdict is None or verdict in Vote.VALID_VERDICTS:
        return verdict
    raise InputInvalid(details={"verdict": [f"Must be one of: {', '.join(Vote.VALID_VERDICTS)}."]})


def _storage_message(e: SQLAlchemyError) -> str:
    orig = getattr(e, "orig", None)
    return str(orig) if orig is not None else str(e)


class VoteFlow:
    """One voting page instance."""

    def __init__(self, repository, hash_secret: str, clock=utcnow):
        self.repository = repository
        self.hash_secret = hash_secret
        self.clock = clock

        self.state = FlowState.LOADING
        self.session = None
        self.identity = None
        self.hashes = None
        self.vote = None

    def load(self, share_token: str, identity: VoterIdentity, origin: Optional[str]):
        """Resolve the session and check for a prior vote from this device."""
        if self.state is not FlowState.LOADING:
            raise RuntimeError(f"cannot load a flow in state {self.state.value}")

        self.session = resolve_session(share_token, now=self.clock())
        self.identity = identity
        self.hashes = hash_voter(identity, origin, self.hash_secret)

        if self.repository.exists(self.session.id, self.hashes.device_hash):
            self.state = FlowState.ALREADY_VOTED
            raise AlreadyVoted()

        self.state = FlowState.READY
        return self.session

    def submit(self, scores, verdict: Optional[str] = None) -> Vote:
        if self.state is FlowState.SUBMITTING:
            raise SubmissionInProgress()
        if self.state in (FlowState.SUCCESS, FlowState.ALREADY_VOTED):
            raise AlreadyVoted()
        if self.state is FlowState.LOADING:
            raise RuntimeError("session has not been loaded")

        clean = validate_scores(scores)
        verdict = validate_verdict(verdict)
        self.state = FlowState.SUBMITTING

        try:
            self.vote = self._write(clean, verdict)
        except VotingError:
            raise
        except Exception:
            # Never leave the flow stuck in SUBMITTING
            self.repository.rollback()
            self.state = FlowState.FAILED
            logger.exception("Unexpected error while recording vote for session %s", self.session.id)
            raise

        self.state = FlowState.SUCCESS
        return self.vote

    def _write(self, scores: dict, verdict: Optional[str]) -> Vote:
        session_id = self.session.id
        device_hash = self.hashes.device_hash
        try:
            voting_session = self.repository.lock_session(session_id)
            if voting_session is None:
                self.repository.rollback()
                self.state = FlowState.FAILED
                raise SessionNotFound()

            if self.repository.exists(session_id, device_hash):
                self.repository.rollback()
                self.state = FlowState.ALREADY_VOTED
                raise AlreadyVoted()

            vote = self.repository.insert(
                voting_session_id=session_id,
                device_hash=device_hash,
                network_hash=self.hashes.network_hash,
                identity_source=self.identity.source,
                scores=scores,
                average_score=mean_score(scores),
                verdict=verdict,
            )
            refresh_session_aggregates(voting_session)
            self.repository.commit()
            return vote
        except IntegrityError as e:
            self.repository.rollback()
            self._classify_conflict(e)
        except SQLAlchemyError as e:
            self.repository.rollback()
            self.state = FlowState.FAILED
            logger.exception("Storage error while recording vote for session %s", session_id)
            raise StorageFailure(_storage_message(e)) from e

    def _classify_conflict(self, e: IntegrityError):
        try:
            duplicate = self.repository.exists(self.session.id, self.hashes.device_hash)
        except SQLAlchemyError:
            self.repository.rollback()
            duplicate = False

        if duplicate:
            self.state = FlowState.ALREADY_VOTED
            logger.info("Duplicate vote rejected by storage for session %s", self.session.id)
            raise AlreadyVoted() from e

        self.state = FlowState.FAILED
        logger.exception("Constraint violation while recording vote for session %s", self.session.id)
        raise StorageFailure(_storage_message(e)) from e
