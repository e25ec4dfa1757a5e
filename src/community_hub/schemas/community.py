# src/community_hub/schemas/community.py
"""Community-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CommunityType = Literal["Single", "Multi"]


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str = Field(..., max_length=120)
    description: str = ""
    type: CommunityType = "Single"
    image: str = ""
    categories: list[str] = Field(default_factory=list)
    authorized_emails: list[str] = Field(
        default_factory=list,
        description="Approvers to invite; Multi communities with approvers start Pending",
    )


class CommunityUpdate(BaseModel):
    """Partial update of the creator-editable fields."""

    name: str | None = Field(None, max_length=120)
    description: str | None = None
    image: str | None = None
    categories: list[str] | None = None


class CommunityStatusUpdate(BaseModel):
    """Administrator moderation action."""

    status: Literal["Active", "Hidden", "Dissolved"]


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str
    image: str
    categories: list[str]
    type: str
    creator_id: int
    status: str
    members_count: int
    followers_count: int
    approval_count: int
    domain_email: str
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingInviteSummary(BaseModel):
    """A pending invitation without its passcode."""

    id: int
    user_id: int | None
    email: str
    otp_expires: datetime
    invited_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommunityDetailResponse(CommunityResponse):
    """Community plus its member-like sets, for the detail view."""

    members: list[int]
    followers: list[int]
    join_requests: list[int]
    authorized_persons: list[int]
    pending_authorized_persons: list[PendingInviteSummary]


class JoinRequestDecision(BaseModel):
    """Identifies the requester an approver acts on."""

    user_id: int


class JoinRequestResponse(BaseModel):
    community_id: int
    status: Literal["requested"] = "requested"


class InviteRequest(BaseModel):
    email: str


class InviteResponse(BaseModel):
    """Result of inviting an authorized person."""

    invite_id: int
    email: str
    user_id: int | None
    otp_expires: datetime
    resent: bool
    delivered: bool


class OTPSubmission(BaseModel):
    otp: str = Field(..., min_length=1, max_length=12)


class AuthorizationStatusResponse(BaseModel):
    """Community state after an authorized person confirmed their code."""

    community_id: int
    status: str
    approval_count: int
    activated: bool
    is_active: bool


class EmailVerificationRequest(BaseModel):
    domain_email: str


class EmailVerificationResponse(BaseModel):
    community_id: int
    domain_email: str
    otp_expires: datetime
    delivered: bool
