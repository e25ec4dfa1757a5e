"""Data access for communities and their membership-like sets."""
from __future__ import annotations

from typing import Any

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.orm import Session

from community_hub.db.upsert import insert_ignore
from community_hub.models import (
    AuthorizationInvite,
    Community,
    CommunityAuthorizedPerson,
    CommunityFollower,
    CommunityJoinRequest,
    CommunityMember,
)
from community_hub.models.community import (
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUS_PENDING,
)
from community_hub.services.errors import NotFoundError

__all__ = ["CommunityStore"]

_SET_TABLES = (
    CommunityMember,
    CommunityFollower,
    CommunityJoinRequest,
    CommunityAuthorizedPerson,
)


class CommunityStore:
    """All reads and writes of community state go through this class.

    Set mutations are single statements (insert-if-absent, delete) and the
    counters are recomputed from the set tables inside one UPDATE, so two
    requests touching the same community never overwrite each other's
    changes. Nothing here commits; callers own the transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session

    # ---- community rows -------------------------------------------------

    def get(self, community_id: int) -> Community:
        """Return a community by id.

        Raises:
            NotFoundError: If the community does not exist.
        """
        community = self.session.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community not found")
        return community

    def get_by_name(self, name: str) -> Community | None:
        return self.session.scalars(select(Community).where(Community.name == name)).first()

    def list_communities(
        self,
        *,
        community_type: str | None = None,
        status: str | None = None,
        creator_id: int | None = None,
        q: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Community]:
        """Return communities matching the filters, newest first."""
        stmt = select(Community)
        if community_type is not None:
            stmt = stmt.where(Community.type == community_type)
        if status is not None:
            stmt = stmt.where(Community.status == status)
        if creator_id is not None:
            stmt = stmt.where(Community.creator_id == creator_id)
        if q:
            stmt = stmt.where(Community.name.ilike(f"%{q}%"))
        stmt = stmt.order_by(Community.created_at.desc(), Community.id.desc())
        stmt = stmt.offset(skip).limit(limit)
        return list(self.session.scalars(stmt))

    def create(self, **fields: Any) -> Community:
        """Insert a new community and return the flushed ORM instance."""
        community = Community(**fields)
        self.session.add(community)
        self.session.flush()
        return community

    def delete(self, community: Community) -> None:
        """Remove a community together with its sets and invitations."""
        for model in (*_SET_TABLES, AuthorizationInvite):
            self.session.execute(delete(model).where(model.community_id == community.id))
        self.session.delete(community)
        self.session.flush()

    def set_status(self, community_id: int, status: str) -> None:
        self.session.execute(
            update(Community).where(Community.id == community_id).values(status=status),
            execution_options={"synchronize_session": False},
        )

    def refresh(self, community: Community) -> Community:
        """Reload a community after statement-level updates."""
        self.session.refresh(community)
        return community

    # ---- set membership -------------------------------------------------

    def _contains(self, model: type[Any], community_id: int, user_id: int) -> bool:
        return bool(
            self.session.scalar(
                select(
                    exists().where(model.community_id == community_id, model.user_id == user_id)
                )
            )
        )

    def _ids(self, model: type[Any], community_id: int) -> set[int]:
        return set(
            self.session.scalars(select(model.user_id).where(model.community_id == community_id))
        )

    def _remove(self, model: type[Any], community_id: int, user_id: int) -> bool:
        result = self.session.execute(
            delete(model).where(model.community_id == community_id, model.user_id == user_id)
        )
        return bool(result.rowcount)

    def _recount(self, community_id: int) -> None:
        member_total = (
            select(func.count())
            .select_from(CommunityMember)
            .where(CommunityMember.community_id == community_id)
            .scalar_subquery()
        )
        follower_total = (
            select(func.count())
            .select_from(CommunityFollower)
            .where(CommunityFollower.community_id == community_id)
            .scalar_subquery()
        )
        self.session.execute(
            update(Community)
            .where(Community.id == community_id)
            .values(members_count=member_total, followers_count=follower_total),
            execution_options={"synchronize_session": False},
        )

    def is_member(self, community_id: int, user_id: int) -> bool:
        return self._contains(CommunityMember, community_id, user_id)

    def is_follower(self, community_id: int, user_id: int) -> bool:
        return self._contains(CommunityFollower, community_id, user_id)

    def has_join_request(self, community_id: int, user_id: int) -> bool:
        return self._contains(CommunityJoinRequest, community_id, user_id)

    def is_authorized(self, community_id: int, user_id: int) -> bool:
        return self._contains(CommunityAuthorizedPerson, community_id, user_id)

    def member_ids(self, community_id: int) -> set[int]:
        return self._ids(CommunityMember, community_id)

    def follower_ids(self, community_id: int) -> set[int]:
        return self._ids(CommunityFollower, community_id)

    def join_request_ids(self, community_id: int) -> set[int]:
        return self._ids(CommunityJoinRequest, community_id)

    def authorized_ids(self, community_id: int) -> set[int]:
        return self._ids(CommunityAuthorizedPerson, community_id)

    def add_member(self, community_id: int, user_id: int) -> bool:
        """Add a member; return False if they already were one."""
        added = insert_ignore(
            self.session, CommunityMember, community_id=community_id, user_id=user_id
        )
        if added:
            self._recount(community_id)
        return added

    def remove_member(self, community_id: int, user_id: int) -> bool:
        removed = self._remove(CommunityMember, community_id, user_id)
        if removed:
            self._recount(community_id)
        return removed

    def add_follower(self, community_id: int, user_id: int) -> bool:
        added = insert_ignore(
            self.session, CommunityFollower, community_id=community_id, user_id=user_id
        )
        if added:
            self._recount(community_id)
        return added

    def remove_follower(self, community_id: int, user_id: int) -> bool:
        removed = self._remove(CommunityFollower, community_id, user_id)
        if removed:
            self._recount(community_id)
        return removed

    def add_join_request(self, community_id: int, user_id: int) -> bool:
        return insert_ignore(
            self.session, CommunityJoinRequest, community_id=community_id, user_id=user_id
        )

    def remove_join_request(self, community_id: int, user_id: int) -> bool:
        return self._remove(CommunityJoinRequest, community_id, user_id)

    def add_authorized_person(self, community_id: int, user_id: int) -> bool:
        return insert_ignore(
            self.session, CommunityAuthorizedPerson, community_id=community_id, user_id=user_id
        )

    # ---- authorization invitations --------------------------------------

    def pending_invites(self, community_id: int) -> list[AuthorizationInvite]:
        """Return invitations in the order they were issued."""
        return list(
            self.session.scalars(
                select(AuthorizationInvite)
                .where(AuthorizationInvite.community_id == community_id)
                .order_by(AuthorizationInvite.id)
            )
        )

    def find_invite_for(
        self,
        community_id: int,
        *,
        user_id: int | None,
        email: str,
    ) -> AuthorizationInvite | None:
        """Return the pending invitation for an identity.

        Registered invitees are identified by user id, everyone else by the
        normalized email the invitation was sent to.
        """
        stmt = select(AuthorizationInvite).where(AuthorizationInvite.community_id == community_id)
        if user_id is not None:
            stmt = stmt.where(AuthorizationInvite.user_id == user_id)
        else:
            stmt = stmt.where(
                AuthorizationInvite.user_id.is_(None),
                AuthorizationInvite.email == email,
            )
        return self.session.scalars(stmt.order_by(AuthorizationInvite.id)).first()

    def add_invite(self, community_id: int, **fields: Any) -> AuthorizationInvite:
        invite = AuthorizationInvite(community_id=community_id, **fields)
        self.session.add(invite)
        self.session.flush()
        return invite

    def claim_invite(self, invite_id: int) -> bool:
        """Delete a pending invitation by id.

        Returns:
            True if this call removed the row, False if it was already gone.
        """
        result = self.session.execute(
            delete(AuthorizationInvite).where(AuthorizationInvite.id == invite_id),
            execution_options={"synchronize_session": False},
        )
        return result.rowcount == 1

    # ---- approval counter and activation --------------------------------

    def increment_approval_count(self, community_id: int) -> None:
        self.session.execute(
            update(Community)
            .where(Community.id == community_id)
            .values(approval_count=Community.approval_count + 1),
            execution_options={"synchronize_session": False},
        )

    def activate_if_approved(self, community_id: int, threshold: int) -> bool:
        """Flip a pending community to active once it has enough approvals.

        Returns:
            True if this call performed the transition.
        """
        result = self.session.execute(
            update(Community)
            .where(
                Community.id == community_id,
                Community.status == COMMUNITY_STATUS_PENDING,
                Community.approval_count >= threshold,
            )
            .values(status=COMMUNITY_STATUS_ACTIVE),
            execution_options={"synchronize_session": False},
        )
        return bool(result.rowcount)

    def activate_pending(self, community_id: int) -> bool:
        """Flip a pending community to active; no-op for any other status."""
        result = self.session.execute(
            update(Community)
            .where(
                Community.id == community_id,
                Community.status == COMMUNITY_STATUS_PENDING,
            )
            .values(status=COMMUNITY_STATUS_ACTIVE),
            execution_options={"synchronize_session": False},
        )
        return bool(result.rowcount)
