"""Lookup of platform users and the user-side view of community links."""
from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from community_hub.db.upsert import insert_ignore
from community_hub.models import User, UserFollowingCommunity, UserJoinedCommunity
from community_hub.services.errors import NotFoundError

__all__ = ["UserDirectory", "normalize_email"]


def normalize_email(email: str) -> str:
    """Return the canonical (trimmed, lower-cased) form of an email address."""
    return email.strip().lower()


class UserDirectory:
    """Thin wrapper around database access for user entities.

    Every link write commits on its own. Callers invoke these after the
    community-side write has committed, so a failure here leaves the two sides
    out of step until the call is retried; all link writes are idempotent to
    make that retry safe.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, user_id: int) -> User:
        """Return a user by primary key.

        Raises:
            NotFoundError: If no such user exists.
        """
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_by_email(self, email: str) -> User | None:
        """Return the user registered under `email`, or None."""
        return self.session.scalars(
            select(User).where(func.lower(User.email) == normalize_email(email))
        ).first()

    def add_joined_community(self, user_id: int, community_id: int) -> bool:
        added = insert_ignore(
            self.session, UserJoinedCommunity, user_id=user_id, community_id=community_id
        )
        self.session.commit()
        return added

    def remove_joined_community(self, user_id: int, community_id: int) -> None:
        self.session.execute(
            delete(UserJoinedCommunity).where(
                UserJoinedCommunity.user_id == user_id,
                UserJoinedCommunity.community_id == community_id,
            )
        )
        self.session.commit()

    def add_following_community(self, user_id: int, community_id: int) -> bool:
        added = insert_ignore(
            self.session, UserFollowingCommunity, user_id=user_id, community_id=community_id
        )
        self.session.commit()
        return added

    def remove_following_community(self, user_id: int, community_id: int) -> None:
        self.session.execute(
            delete(UserFollowingCommunity).where(
                UserFollowingCommunity.user_id == user_id,
                UserFollowingCommunity.community_id == community_id,
            )
        )
        self.session.commit()

    def joined_community_ids(self, user_id: int) -> set[int]:
        """Return the ids of communities `user_id` has joined."""
        return set(
            self.session.scalars(
                select(UserJoinedCommunity.community_id).where(
                    UserJoinedCommunity.user_id == user_id
                )
            )
        )

    def following_community_ids(self, user_id: int) -> set[int]:
        """Return the ids of communities `user_id` follows."""
        return set(
            self.session.scalars(
                select(UserFollowingCommunity.community_id).where(
                    UserFollowingCommunity.user_id == user_id
                )
            )
        )

    def forget_community(self, community_id: int) -> None:
        """Drop every user-side link to a deleted community."""
        self.session.execute(
            delete(UserJoinedCommunity).where(UserJoinedCommunity.community_id == community_id)
        )
        self.session.execute(
            delete(UserFollowingCommunity).where(
                UserFollowingCommunity.community_id == community_id
            )
        )
        self.session.commit()
