"""SQLAlchemy models for platform users and their community links."""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_hub.db.session import Base
from community_hub.db.time import utcnow

USER_ROLE_ADMIN = "Admin"
USER_ROLE_REPORTER = "Reporter"
USER_ROLE_USER = "User"


class User(Base):
    """A registered platform account."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stored lower-cased and trimmed.
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=USER_ROLE_USER)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @property
    def is_admin(self) -> bool:
        """Return True for platform administrators."""
        return self.role == USER_ROLE_ADMIN


class UserJoinedCommunity(Base):
    """User-side record of community membership."""

    __tablename__ = "user_joined_community"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    community_id: Mapped[int] = mapped_column(Integer, primary_key=True)


class UserFollowingCommunity(Base):
    """User-side record of followed communities."""

    __tablename__ = "user_following_community"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    community_id: Mapped[int] = mapped_column(Integer, primary_key=True)
