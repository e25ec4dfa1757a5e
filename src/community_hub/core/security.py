"""JWT helpers for resolving the acting user."""
from __future__ import annotations

from datetime import timedelta

from jose import JWTError, jwt

from community_hub.core.settings import settings
from community_hub.db.time import utcnow


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Return a signed bearer token whose subject is `user_id`.

    Token issuance belongs to the identity service; this helper exists for
    local development and tests.
    """
    ttl = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    payload = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(minutes=ttl),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_subject(token: str) -> int:
    """Decode a bearer token and return its integer subject.

    Raises:
        JWTError: If the token is invalid, expired or has a malformed subject.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise JWTError("Token subject is not a user id") from err
