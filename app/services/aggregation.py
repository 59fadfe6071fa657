from typing import Mapping

from sqlalchemy import func, case

from ..extensions import db
from ..models.vote import Vote
from ..questions import SCORE_KEYS


def mean_score(scores: Mapping[str, float]) -> float:
    """Arithmetic mean of the five dimension scores; the only definition of a vote's average."""
    return round(sum(float(scores[key]) for key in SCORE_KEYS) / len(SCORE_KEYS), 2)


def _rounded(value):
    return round(float(value), 2) if value is not None else None


def session_results(voting_session_id) -> dict:
    columns = [func.avg(getattr(Vote, key)).label(key) for key in SCORE_KEYS]
    row = (
        db.session.query(
            func.count(Vote.id).label("total_votes"),
            func.avg(Vote.average_score).label("average_score"),
            func.count(Vote.verdict).label("verdicts"),
            func.sum(case((Vote.verdict == Vote.VERDICT_APPROVE, 1), else_=0)).label("approvals"),
            *columns,
        )
        .filter(Vote.voting_session_id == voting_session_id)
        .one()
    )

    verdicts = int(row.verdicts or 0)
    approvals = int(row.approvals or 0)
    approval_rate = round(approvals / verdicts * 100.0, 2) if verdicts else None

    return {
        "total_votes": int(row.total_votes or 0),
        "average_score": _rounded(row.average_score),
        "approval_rate": approval_rate,
        "scores": {key: _rounded(getattr(row, key)) for key in SCORE_KEYS},
    }


def refresh_session_aggregates(voting_session) -> dict:
    """Recompute the stored counters of a session from its votes (pending rows included)."""
    results = session_results(voting_session.id)
    voting_session.total_votes = results["total_votes"]
    voting_session.average_score = results["average_score"]
    voting_session.approval_rate = results["approval_rate"]
    for key, value in results["scores"].items():
        setattr(voting_session, key, value)
    return results
