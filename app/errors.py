from flask import jsonify, g, current_app
from werkzeug.exceptions import HTTPException


class VotingError(Exception):
    """Base for the expected failures of the voting workflow."""

    code = "VOTING_ERROR"
    status = 400
    message = "Request could not be completed"

    def __init__(self, message=None, details=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class InputInvalid(VotingError):
    code = "INPUT_INVALID"
    status = 400
    message = "Validation error"


class SessionNotFound(VotingError):
    code = "NOT_FOUND"
    status = 404
    message = "Voting session not found"


class SessionExpired(VotingError):
    code = "EXPIRED"
    status = 410
    message = "Voting session has expired"


class MissingPhoto(VotingError):
    code = "MISSING_PHOTO"
    status = 422
    message = "Voting session has no photo to display"


class AlreadyVoted(VotingError):
    code = "ALREADY_VOTED"
    status = 409
    message = "A vote has already been submitted from this device"


class SubmissionInProgress(VotingError):
    code = "SUBMISSION_IN_PROGRESS"
    status = 409
    message = "A submission is already in progress"


class StorageFailure(VotingError):
    code = "STORAGE_ERROR"
    status = 503
    message = "Failed to record vote"

    def __init__(self, message=None, details=None):
        details = dict(details or {})
        details.setdefault("retryable", True)
        super().__init__(message, details)


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )


def register_error_handlers(app):
    @app.errorhandler(VotingError)
    def handle_voting_error(e: VotingError):
        return _payload(code=e.code, message=e.message, details=e.details, status=e.status)

    # Generic HTTP errors (404, 403, 401, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # If we pass structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(500)
    def handle_500(e):
        current_app.logger.error("Unhandled error request_id=%s: %s", getattr(g, "request_id", None), e)
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
