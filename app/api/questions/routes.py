from flask import Blueprint
from flasgger import swag_from

from ...questions import catalog

questions_bp = Blueprint("questions", __name__)


@questions_bp.get("/")
@swag_from({
    "tags": ["Questions"],
    "summary": "The five rated dimensions and the score scale",
    "responses": {200: {"description": "OK"}},
})
def list_questions():
    return catalog(), 200
