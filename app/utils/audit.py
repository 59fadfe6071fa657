from typing import Optional, Dict, Any
from flask import request, current_app
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity

from ..extensions import db
from ..models.audit_log import AuditLog
from ..services.voter_identity import network_origin
from .digest import token_digest


def _optional_actor():
    """
    Returns the user id or None.
    Works for both authenticated and anonymous requests.
    """
    try:
        verify_jwt_in_request(optional=True)
        return get_jwt_identity()
    except Exception:
        return None


def audit_log(
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    user_id = _optional_actor()

    # Only the keyed digest of the network origin is kept
    ip_hash = token_digest(network_origin(request), current_app.config["VOTER_HASH_SECRET"])
    ua = request.headers.get("User-Agent")

    log = AuditLog(
        actor_user_id=user_id if user_id else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id if entity_id else None,
        ip_hash=ip_hash,
        user_agent=ua[:255] if ua else None,
        details=details or None,
    )
    db.session.add(log)


def safe_audit(action: str, entity_type: str, entity_id: Optional[str] = None, details: Optional[dict] = None):
    """
    Best-effort audit committed on its own.
    Never breaks the endpoint if auditing fails.
    """
    try:
        audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
