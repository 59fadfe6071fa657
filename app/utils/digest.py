import secrets
import hmac
import hashlib


def generate_raw_token(length: int = 16) -> str:
    return secrets.token_urlsafe(length)


def token_digest(raw_token: str, secret: str) -> str:
    """
    Deterministic digest using HMAC-SHA256 keyed with a server secret.
    Safe to store in DB; the raw value is never persisted.
    """
    key = secret.encode("utf-8")
    msg = raw_token.encode("utf-8")
    return hmac.new(key, msg, hashlib.sha256).hexdigest()
