"""SQLAlchemy models for communities, their member sets and invitations."""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_hub.db.session import Base
from community_hub.db.time import utcnow

COMMUNITY_TYPE_SINGLE = "Single"
COMMUNITY_TYPE_MULTI = "Multi"
COMMUNITY_TYPES = (COMMUNITY_TYPE_SINGLE, COMMUNITY_TYPE_MULTI)

COMMUNITY_STATUS_PENDING = "Pending"
COMMUNITY_STATUS_ACTIVE = "Active"
COMMUNITY_STATUS_HIDDEN = "Hidden"
COMMUNITY_STATUS_DISSOLVED = "Dissolved"
COMMUNITY_STATUSES = (
    COMMUNITY_STATUS_PENDING,
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUS_HIDDEN,
    COMMUNITY_STATUS_DISSOLVED,
)


class Community(Base):
    """A named group with members, followers and an activation lifecycle.

    Membership-like collections live in their own tables keyed by
    (community_id, user_id); the counters here are recomputed from those
    tables whenever they change.
    """

    __tablename__ = "community"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Banner or logo URL.
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=COMMUNITY_TYPE_SINGLE)
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=COMMUNITY_STATUS_PENDING,
        index=True,
    )

    members_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Monotonic; one increment per confirmed authorization OTP.
    approval_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Single-creator domain email verification channel.
    domain_email: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email_otp: Mapped[str | None] = mapped_column(String(12), nullable=True)
    email_otp_expires: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )


class CommunityMember(Base):
    """Join table mapping users into communities."""

    __tablename__ = "community_member"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class CommunityFollower(Base):
    """Users following a community; independent of membership."""

    __tablename__ = "community_follower"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class CommunityJoinRequest(Base):
    """Users awaiting approval to become members."""

    __tablename__ = "community_join_request"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class CommunityAuthorizedPerson(Base):
    """Users holding posting and moderation rights beyond the creator."""

    __tablename__ = "community_authorized_person"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class AuthorizationInvite(Base):
    """A pending authorized-person invitation confirmed by OTP.

    `user_id` is unset when the invited email did not belong to a registered
    user at invite time; such invites are claimed by whoever presents the code.
    Rows are ordered by `id`, which follows insertion order.
    """

    __tablename__ = "authorization_invite"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    otp: Mapped[str] = mapped_column(String(12), nullable=False)
    otp_expires: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    invited_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
