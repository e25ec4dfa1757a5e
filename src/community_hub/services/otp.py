"""One-time passcode generation for invitations and email verification."""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from community_hub.core.settings import settings
from community_hub.db.time import as_utc, utcnow

OTP_DIGITS = "0123456789"


@dataclass(frozen=True)
class IssuedOTP:
    """A freshly generated code and the instant after which it stops working."""

    code: str
    expires_at: datetime


def generate_otp(length: int | None = None) -> str:
    """Return a numeric code of `length` digits (leading zeros allowed)."""
    size = length if length is not None else settings.otp_length
    return "".join(secrets.choice(OTP_DIGITS) for _ in range(size))


def issue_otp(now: datetime | None = None, ttl_minutes: int | None = None) -> IssuedOTP:
    """Generate a code together with its expiry, `ttl_minutes` from `now`."""
    issued_at = now if now is not None else utcnow()
    ttl = ttl_minutes if ttl_minutes is not None else settings.otp_ttl_minutes
    return IssuedOTP(code=generate_otp(), expires_at=issued_at + timedelta(minutes=ttl))


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """Return True when `now` is strictly past `expires_at`.

    A missing expiry counts as expired; stored codes always carry one.
    """
    if expires_at is None:
        return True
    return as_utc(now) > as_utc(expires_at)
