"""Authorized-person invitations and community activation.

Two independent channels move a community from Pending to Active:

- Multi-approver: the creator invites people by email, each invitee confirms
  with the OTP they received, and the community activates once
  `ACTIVATION_APPROVAL_THRESHOLD` confirmations have been counted.
- Domain email: the creator proves ownership of a domain address with a
  single OTP.

Neither channel ever moves a community back to Pending.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.orm import Session

from community_hub.core.settings import settings
from community_hub.db.time import utcnow
from community_hub.models import AuthorizationInvite, Community
from community_hub.models.community import COMMUNITY_STATUS_ACTIVE
from community_hub.services.community_store import CommunityStore
from community_hub.services.errors import (
    AlreadyAuthorizedError,
    ForbiddenError,
    InvalidOTPError,
    OTPExpiredError,
    ValidationError,
)
from community_hub.services.notifier import Notifier, get_notifier, render_otp_email
from community_hub.services.otp import is_expired, issue_otp
from community_hub.services.user_directory import UserDirectory, normalize_email

logger = logging.getLogger(__name__)

# Confirmed approvals needed before a pending community becomes active.
# TODO: move onto Community once product decides per-community thresholds.
ACTIVATION_APPROVAL_THRESHOLD = 2

INVITE_SUBJECT = "Community Authorization Invite"
EMAIL_VERIFICATION_SUBJECT = "Community Email Verification"


@dataclass(frozen=True)
class InviteOutcome:
    """Result of issuing or re-issuing an authorized-person invitation."""

    invite: AuthorizationInvite
    resent: bool
    delivered: bool


@dataclass(frozen=True)
class AuthorizationResult:
    """Community state after a successful OTP confirmation."""

    community_id: int
    status: str
    approval_count: int
    activated: bool

    @property
    def is_active(self) -> bool:
        return self.status == COMMUNITY_STATUS_ACTIVE


@dataclass(frozen=True)
class EmailVerificationOutcome:
    """Result of sending a domain email verification code."""

    community: Community
    otp_expires: datetime
    delivered: bool


class AuthorizationManager:
    """Service handling authorization invitations and activation."""

    def __init__(
        self,
        session: Session,
        *,
        users: UserDirectory | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session = session
        self.store = CommunityStore(session)
        self.users = users or UserDirectory(session)
        self.notifier = notifier or get_notifier()
        self.clock = clock

    def _dispatch(self, to_email: str, subject: str, html_body: str) -> bool:
        """Send a message without letting delivery problems fail the caller."""
        try:
            delivered = self.notifier.send(to_email, subject, html_body)
        except Exception:  # pragma: no cover - notifiers are expected to return False
            logger.exception("Notifier raised while sending %r to %s", subject, to_email)
            return False
        if not delivered:
            logger.warning("Delivery of %r to %s failed; state change kept", subject, to_email)
        return delivered

    def invite_authorized_person(
        self,
        community_id: int,
        requester_id: int,
        email: str,
    ) -> InviteOutcome:
        """Invite `email` to become an authorized person of the community.

        Inviting an identity that already has a pending invitation refreshes
        that invitation's code and expiry instead of adding a second entry.
        The invitation is committed before the email is sent; a failed send is
        reported through `InviteOutcome.delivered`.

        Raises:
            ValidationError: If `email` is blank.
            NotFoundError: If the community does not exist.
            ForbiddenError: If `requester_id` is not the creator.
            AlreadyAuthorizedError: If the invitee is already authorized.
        """
        address = normalize_email(email or "")
        if not address:
            raise ValidationError("Email is required")

        community = self.store.get(community_id)
        if community.creator_id != requester_id:
            raise ForbiddenError("Only creator can invite")

        invitee = self.users.find_by_email(address)
        invitee_id = invitee.id if invitee is not None else None
        if invitee_id is not None and self.store.is_authorized(community.id, invitee_id):
            raise AlreadyAuthorizedError("User already authorized")

        now = self.clock()
        issued = issue_otp(now)
        invite = self.store.find_invite_for(community.id, user_id=invitee_id, email=address)
        resent = invite is not None
        if invite is not None:
            invite.otp = issued.code
            invite.otp_expires = issued.expires_at
        else:
            invite = self.store.add_invite(
                community.id,
                user_id=invitee_id,
                email=address,
                otp=issued.code,
                otp_expires=issued.expires_at,
                invited_at=now,
            )
        self.session.commit()
        if resent:
            logger.info("Re-issued authorization invite %s for community %s", invite.id, community.id)

        delivered = self._dispatch(
            address,
            INVITE_SUBJECT,
            render_otp_email(
                f"You have been invited to help run {community.name}",
                issued.code,
                settings.otp_ttl_minutes,
            ),
        )
        return InviteOutcome(invite=invite, resent=resent, delivered=delivered)

    def _match_invite(
        self,
        community_id: int,
        confirming_user_id: int,
        otp: str,
    ) -> AuthorizationInvite | None:
        # Invites without a bound user can be claimed by anyone holding the code.
        for invite in self.store.pending_invites(community_id):
            if invite.otp != otp:
                continue
            if invite.user_id is None or invite.user_id == confirming_user_id:
                return invite
        return None

    def verify_authorized_otp(
        self,
        community_id: int,
        confirming_user_id: int,
        otp: str,
    ) -> AuthorizationResult:
        """Confirm an invitation and count one approval.

        Raises:
            NotFoundError: If the community does not exist.
            InvalidOTPError: If no pending invitation matches the code and user.
            OTPExpiredError: If the matching invitation has expired; it stays pending.
        """
        community = self.store.get(community_id)
        invite = self._match_invite(community.id, confirming_user_id, (otp or "").strip())
        if invite is None:
            raise InvalidOTPError("Invalid OTP or invitation not found")
        if is_expired(invite.otp_expires, self.clock()):
            raise OTPExpiredError("OTP expired")

        # A concurrent confirmation of the same invitation may have claimed it first.
        if not self.store.claim_invite(invite.id):
            raise InvalidOTPError("Invalid OTP or invitation not found")
        self.session.expunge(invite)
        self.store.add_authorized_person(community.id, confirming_user_id)
        # An authorized user keeps no other pending invitation in this community.
        self.session.execute(
            delete(AuthorizationInvite).where(
                AuthorizationInvite.community_id == community.id,
                AuthorizationInvite.user_id == confirming_user_id,
            )
        )
        self.store.increment_approval_count(community.id)
        activated = self.store.activate_if_approved(community.id, ACTIVATION_APPROVAL_THRESHOLD)
        self.session.commit()
        self.store.refresh(community)

        if activated:
            logger.info(
                "Community %s activated after %d approvals",
                community.id,
                community.approval_count,
            )
        return AuthorizationResult(
            community_id=community.id,
            status=community.status,
            approval_count=community.approval_count,
            activated=activated,
        )

    def send_email_verification(
        self,
        community_id: int,
        requester_id: int,
        domain_email: str,
    ) -> EmailVerificationOutcome:
        """Store a fresh domain-email code on the community and send it.

        Raises:
            ValidationError: If `domain_email` is blank.
            ForbiddenError: If `requester_id` is not the creator.
        """
        address = normalize_email(domain_email or "")
        if not address:
            raise ValidationError("Domain email is required")

        community = self.store.get(community_id)
        if community.creator_id != requester_id:
            raise ForbiddenError("Only creator can verify email")

        issued = issue_otp(self.clock())
        community.domain_email = address
        community.email_otp = issued.code
        community.email_otp_expires = issued.expires_at
        self.session.commit()
        self.store.refresh(community)

        delivered = self._dispatch(
            address,
            EMAIL_VERIFICATION_SUBJECT,
            render_otp_email(
                f"Verify {address} for {community.name}",
                issued.code,
                settings.otp_ttl_minutes,
            ),
        )
        return EmailVerificationOutcome(
            community=community,
            otp_expires=issued.expires_at,
            delivered=delivered,
        )

    def verify_domain_email(self, community_id: int, otp: str) -> Community:
        """Confirm the domain email code and activate a pending community.

        The stored code is cleared on success, so each code works once.

        Raises:
            InvalidOTPError: If no code is stored or it does not match.
            OTPExpiredError: If the stored code has expired.
        """
        community = self.store.get(community_id)
        if community.email_otp is None or community.email_otp != (otp or "").strip():
            raise InvalidOTPError("Invalid OTP")
        if is_expired(community.email_otp_expires, self.clock()):
            raise OTPExpiredError("OTP expired")

        community.is_email_verified = True
        community.email_otp = None
        community.email_otp_expires = None
        self.session.flush()
        activated = self.store.activate_pending(community.id)
        self.session.commit()
        self.store.refresh(community)

        logger.info(
            "Domain email verified for community %s (activated=%s)", community.id, activated
        )
        return community
