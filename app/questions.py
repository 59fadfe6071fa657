"""
Static catalog of the five rated dimensions.

The order here is the order the voting page renders and the order scores are
reported in results. Every vote must carry exactly one score per key.
"""
from collections import namedtuple

SCORE_MIN = 1
SCORE_MAX = 10
SCORE_STEP = 0.5
SCORE_DEFAULT = 5.5

Question = namedtuple("Question", ["id", "key", "title", "description"])

QUESTIONS = (
    Question(
        1,
        "score_courage",
        "Courage and risk taking",
        "How much courage this person shows in the face of difficulty and how willing they are to take risks.",
    ),
    Question(
        2,
        "score_honesty",
        "Honesty and trustworthiness",
        "How honest, reliable and transparent this person is.",
    ),
    Question(
        3,
        "score_loyalty",
        "Commitment and loyalty",
        "How committed and loyal this person is to the people and work around them.",
    ),
    Question(
        4,
        "score_work_ethic",
        "Work ethic",
        "How hard-working, productive and persistent this person is.",
    ),
    Question(
        5,
        "score_discipline",
        "Self discipline",
        "How self-disciplined, orderly and systematic this person is.",
    ),
)

SCORE_KEYS = tuple(q.key for q in QUESTIONS)


def catalog() -> dict:
    return {
        "questions": [q._asdict() for q in QUESTIONS],
        "score_min": SCORE_MIN,
        "score_max": SCORE_MAX,
        "score_step": SCORE_STEP,
        "score_default": SCORE_DEFAULT,
    }
