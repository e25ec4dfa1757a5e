"""Typed failures raised by the community services.

Every error here is caller-correctable. The HTTP layer renders them through a
single exception handler using `status_code` and `kind`; anything else that
escapes a service is an infrastructure failure.
"""

from __future__ import annotations

from fastapi import status


class CommunityError(RuntimeError):
    """Base exception for business-rule failures."""

    kind = "CommunityError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CommunityError):
    """Referenced community, user or invitation does not exist."""

    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(CommunityError):
    """Actor lacks the creator or authorized-person role for the operation."""

    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(CommunityError):
    """Community name is already taken."""

    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT


class AlreadyMemberError(ConflictError):
    kind = "AlreadyMember"


class AlreadyFollowingError(ConflictError):
    kind = "AlreadyFollowing"


class AlreadyAuthorizedError(ConflictError):
    kind = "AlreadyAuthorized"


class DuplicateRequestError(ConflictError):
    kind = "DuplicateRequest"


class NotMemberError(CommunityError):
    kind = "NotMember"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidOTPError(CommunityError):
    """Submitted code matches no pending invitation or verification channel."""

    kind = "InvalidOTP"


class OTPExpiredError(CommunityError):
    """Code matched but its expiry instant has passed."""

    kind = "OTPExpired"


class ValidationError(CommunityError):
    """Required input is missing or not acceptable."""

    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
