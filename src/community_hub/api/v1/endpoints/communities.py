# src/community_hub/api/v1/endpoints/communities.py
"""Community-related endpoints for the Community Hub API."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query, Response, status

from community_hub.models import Community
from community_hub.schemas.community import (
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
from community_hub.services.community_store import CommunityStore

from ..dependencies import (
    AuthorizationDep,
    CommunityServiceDep,
    CurrentUserDep,
    MembershipDep,
)

router = APIRouter(prefix="/communities", tags=["communities"])


def _detail(store: CommunityStore, community: Community) -> CommunityDetailResponse:
    base = CommunityResponse.model_validate(community).model_dump()
    return CommunityDetailResponse(
        **base,
        members=sorted(store.member_ids(community.id)),
        followers=sorted(store.follower_ids(community.id)),
        join_requests=sorted(store.join_request_ids(community.id)),
        authorized_persons=sorted(store.authorized_ids(community.id)),
        pending_authorized_persons=[
            PendingInviteSummary.model_validate(invite)
            for invite in store.pending_invites(community.id)
        ],
    )


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(
    service: CommunityServiceDep,
    type: Literal["Single", "Multi"] | None = None,
    status_filter: Literal["Pending", "Active", "Hidden", "Dissolved"] | None = Query(
        None, alias="status"
    ),
    creator_id: int | None = None,
    q: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> list[Community]:
    """List communities, newest first."""
    return service.list_communities(
        community_type=type,
        status=status_filter,
        creator_id=creator_id,
        q=q,
        skip=skip,
        limit=limit,
    )


@router.get("/{community_id}", response_model=CommunityDetailResponse)
async def get_community(community_id: int, service: CommunityServiceDep) -> CommunityDetailResponse:
    """Get a specific community by ID."""
    community = service.get_community(community_id)
    return _detail(service.store, community)


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    service: CommunityServiceDep,
) -> Community:
    """Create a new community owned by the caller."""
    return service.create_community(
        current_user.id,
        name=community_data.name,
        description=community_data.description,
        community_type=community_data.type,
        image=community_data.image,
        categories=community_data.categories,
        authorized_emails=community_data.authorized_emails,
    )


@router.patch("/{community_id}", response_model=CommunityResponse)
async def update_community(
    community_id: int,
    changes: CommunityUpdate,
    current_user: CurrentUserDep,
    service: CommunityServiceDep,
) -> Community:
    """Edit creator-owned fields of a community."""
    return service.update_community(
        current_user.id,
        community_id,
        changes.model_dump(exclude_unset=True),
    )


@router.delete(
    "/{community_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_community(
    community_id: int,
    current_user: CurrentUserDep,
    service: CommunityServiceDep,
) -> Response:
    """Delete a community."""
    service.delete_community(current_user.id, community_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{community_id}/status", response_model=CommunityResponse)
async def moderate_community(
    community_id: int,
    payload: CommunityStatusUpdate,
    current_user: CurrentUserDep,
    service: CommunityServiceDep,
) -> Community:
    """Hide, dissolve or restore a community (administrators only)."""
    return service.moderate_community(current_user.id, community_id, payload.status)


# ---- membership -----------------------------------------------------------


@router.post(
    "/{community_id}/join",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> JoinRequestResponse:
    """Ask to join a community; membership starts once approved."""
    community = membership.submit_join_request(community_id, current_user.id)
    return JoinRequestResponse(community_id=community.id)


@router.post("/{community_id}/requests/approve", response_model=CommunityResponse)
async def approve_join_request(
    community_id: int,
    decision: JoinRequestDecision,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> Community:
    """Approve a pending join request."""
    return membership.approve_join_request(
        community_id,
        decision.user_id,
        approver_id=current_user.id,
    )


@router.post("/{community_id}/requests/reject", response_model=CommunityResponse)
async def reject_join_request(
    community_id: int,
    decision: JoinRequestDecision,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> Community:
    """Reject a pending join request."""
    return membership.reject_join_request(community_id, current_user.id, decision.user_id)


@router.delete("/{community_id}/members/{user_id}", response_model=CommunityResponse)
async def remove_member(
    community_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> Community:
    """Remove a member, or leave when `user_id` is the caller."""
    return membership.remove_member(community_id, user_id, actor_id=current_user.id)


@router.post("/{community_id}/follow", response_model=CommunityResponse)
async def follow_community(
    community_id: int,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> Community:
    """Follow a community."""
    return membership.follow_community(community_id, current_user.id)


@router.delete("/{community_id}/follow", response_model=CommunityResponse)
async def unfollow_community(
    community_id: int,
    current_user: CurrentUserDep,
    membership: MembershipDep,
) -> Community:
    """Unfollow a community."""
    return membership.unfollow_community(community_id, current_user.id)


# ---- authorization --------------------------------------------------------


@router.post("/{community_id}/authorized/invite", response_model=InviteResponse)
def invite_authorized_person(
    community_id: int,
    payload: InviteRequest,
    current_user: CurrentUserDep,
    authorization: AuthorizationDep,
) -> InviteResponse:
    """Invite someone by email to become an authorized person."""
    outcome = authorization.invite_authorized_person(community_id, current_user.id, payload.email)
    return InviteResponse(
        invite_id=outcome.invite.id,
        email=outcome.invite.email,
        user_id=outcome.invite.user_id,
        otp_expires=outcome.invite.otp_expires,
        resent=outcome.resent,
        delivered=outcome.delivered,
    )


@router.post("/{community_id}/authorized/verify", response_model=AuthorizationStatusResponse)
async def verify_authorized_otp(
    community_id: int,
    payload: OTPSubmission,
    current_user: CurrentUserDep,
    authorization: AuthorizationDep,
) -> AuthorizationStatusResponse:
    """Confirm an authorized-person invitation with its OTP."""
    result = authorization.verify_authorized_otp(community_id, current_user.id, payload.otp)
    return AuthorizationStatusResponse(
        community_id=result.community_id,
        status=result.status,
        approval_count=result.approval_count,
        activated=result.activated,
        is_active=result.is_active,
    )


@router.post("/{community_id}/verify-email/send", response_model=EmailVerificationResponse)
def send_email_verification(
    community_id: int,
    payload: EmailVerificationRequest,
    current_user: CurrentUserDep,
    authorization: AuthorizationDep,
) -> EmailVerificationResponse:
    """Send a verification code to the community's domain email."""
    outcome = authorization.send_email_verification(
        community_id, current_user.id, payload.domain_email
    )
    return EmailVerificationResponse(
        community_id=outcome.community.id,
        domain_email=outcome.community.domain_email,
        otp_expires=outcome.otp_expires,
        delivered=outcome.delivered,
    )


@router.post("/{community_id}/verify-email/confirm", response_model=CommunityResponse)
async def verify_domain_email(
    community_id: int,
    payload: OTPSubmission,
    _current_user: CurrentUserDep,
    authorization: AuthorizationDep,
) -> Community:
    """Confirm the domain email code and activate the community."""
    return authorization.verify_domain_email(community_id, payload.otp)
