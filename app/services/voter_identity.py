"""
Voter identity derivation.

The browser runs a fingerprinting library and hands us an opaque visitor id.
That id (and the network origin of the request) is only ever used through a
keyed HMAC-SHA256 digest, so neither can be recovered from what is stored.

When no usable visitor id is available we never block the vote: a random
``fallback-`` id is issued instead. It is only stable for as long as the
client keeps sending it back, and it is tagged so callers can tell it apart
from a real fingerprint.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..utils.digest import generate_raw_token, token_digest

logger = logging.getLogger(__name__)

SOURCE_FINGERPRINT = "fingerprint"
SOURCE_FALLBACK = "fallback"
FALLBACK_PREFIX = "fallback-"
UNKNOWN_ORIGIN = "unknown"
MAX_VISITOR_ID_LENGTH = 128


class MissingVisitorId(LookupError):
    pass


@dataclass(frozen=True)
class VoterIdentity:
    visitor_id: str
    source: str

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


@dataclass(frozen=True)
class VoterHashes:
    device_hash: str
    network_hash: str


def fallback_visitor_id() -> str:
    return FALLBACK_PREFIX + generate_raw_token(12)


def derive_voter_identity(fetch_visitor_id: Callable[[], Optional[str]]) -> VoterIdentity:
    try:
        visitor_id = fetch_visitor_id()
        if not visitor_id or not visitor_id.strip():
            raise MissingVisitorId("empty visitor id")
        visitor_id = visitor_id.strip()
        if len(visitor_id) > MAX_VISITOR_ID_LENGTH:
            raise ValueError("visitor id too long")
    except Exception as e:
        logger.warning("Visitor id unavailable, issuing fallback id: %s", type(e).__name__)
        return VoterIdentity(fallback_visitor_id(), SOURCE_FALLBACK)

    if visitor_id.startswith(FALLBACK_PREFIX):
        return VoterIdentity(visitor_id, SOURCE_FALLBACK)
    return VoterIdentity(visitor_id, SOURCE_FINGERPRINT)


def request_visitor_id(req, payload: Optional[dict] = None) -> Callable[[], Optional[str]]:
    """Identity collaborator for an HTTP request: body field, query arg, then header."""
    def fetch():
        value = (payload or {}).get("visitor_id") or req.args.get("visitor_id")
        if not value:
            value = req.headers.get("X-Visitor-Id")
        if value is not None and not isinstance(value, str):
            raise TypeError("visitor id must be a string")
        return value
    return fetch


def network_origin(req) -> str:
    forwarded = req.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    return first or req.remote_addr or UNKNOWN_ORIGIN


def voter_digest(raw: str, secret: str) -> str:
    return token_digest(raw, secret)


def hash_voter(identity: VoterIdentity, origin: Optional[str], secret: str) -> VoterHashes:
    return VoterHashes(
        device_hash=voter_digest(identity.visitor_id, secret),
        network_hash=voter_digest(origin or UNKNOWN_ORIGIN, secret),
    )
