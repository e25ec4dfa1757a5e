# src/community_hub/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .community import (
    AuthorizationStatusResponse,
    CommunityCreate,
    CommunityDetailResponse,
    CommunityResponse,
    CommunityStatusUpdate,
    CommunityUpdate,
    EmailVerificationRequest,
    EmailVerificationResponse,
    InviteRequest,
    InviteResponse,
    JoinRequestDecision,
    JoinRequestResponse,
    OTPSubmission,
    PendingInviteSummary,
)

__all__ = [
    "AuthorizationStatusResponse",
    "CommunityCreate", "CommunityDetailResponse", "CommunityResponse",
    "CommunityStatusUpdate", "CommunityUpdate",
    "EmailVerificationRequest", "EmailVerificationResponse",
    "InviteRequest", "InviteResponse",
    "JoinRequestDecision", "JoinRequestResponse",
    "OTPSubmission", "PendingInviteSummary",
]
