"""Join requests, membership and following for communities."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from community_hub.models import Community
from community_hub.models.activity import ACTION_FOLLOW, ACTION_JOIN_REQUEST, TARGET_COMMUNITY
from community_hub.services.activity import ActivityRecorder
from community_hub.services.community_store import CommunityStore
from community_hub.services.errors import (
    AlreadyFollowingError,
    AlreadyMemberError,
    DuplicateRequestError,
    ForbiddenError,
    NotMemberError,
)
from community_hub.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def can_moderate(store: CommunityStore, community: Community, actor_id: int) -> bool:
    """Return True if `actor_id` is the creator or an authorized person."""
    return community.creator_id == actor_id or store.is_authorized(community.id, actor_id)


class MembershipManager:
    """Service handling join requests, member removal and follows.

    Each operation commits the community-side change first and then updates
    the user-side link through the `UserDirectory` in a separate commit.
    The two writes are not atomic; the user-side writes are idempotent so a
    failed second write can simply be retried.
    """

    def __init__(
        self,
        session: Session,
        *,
        users: UserDirectory | None = None,
        activity: ActivityRecorder | None = None,
    ) -> None:
        self.session = session
        self.store = CommunityStore(session)
        self.users = users or UserDirectory(session)
        self.activity = activity or ActivityRecorder(session)

    def _require_moderator(self, community: Community, actor_id: int) -> None:
        if not can_moderate(self.store, community, actor_id):
            raise ForbiddenError("Not authorized")

    def submit_join_request(self, community_id: int, user_id: int) -> Community:
        """Queue `user_id` for approval into the community.

        Raises:
            NotFoundError: If the community does not exist.
            AlreadyMemberError: If the user is already a member.
            DuplicateRequestError: If a request from the user is already queued.
        """
        community = self.store.get(community_id)
        if self.store.is_member(community.id, user_id):
            raise AlreadyMemberError("Already a member")
        if not self.store.add_join_request(community.id, user_id):
            raise DuplicateRequestError("Request already sent")
        self.session.commit()
        self.store.refresh(community)

        self.activity.record(
            user_id, ACTION_JOIN_REQUEST, TARGET_COMMUNITY, community.id, community.name
        )
        return community

    def approve_join_request(
        self,
        community_id: int,
        user_id: int,
        *,
        approver_id: int | None = None,
    ) -> Community:
        """Admit `user_id` as a member and clear any queued request.

        Safe to repeat: a second call leaves membership unchanged. No activity
        record is written for approvals. When `approver_id` is given it must
        belong to the creator or an authorized person.

        Raises:
            NotFoundError: If the community or `user_id` does not exist.
            ForbiddenError: If `approver_id` may not moderate the community.
        """
        community = self.store.get(community_id)
        if approver_id is not None:
            self._require_moderator(community, approver_id)
        self.users.find_by_id(user_id)

        self.store.remove_join_request(community.id, user_id)
        added = self.store.add_member(community.id, user_id)
        self.session.commit()
        self.store.refresh(community)

        self.users.add_joined_community(user_id, community.id)
        if added:
            logger.info("User %s joined community %s", user_id, community.id)
        return community

    def reject_join_request(self, community_id: int, approver_id: int, user_id: int) -> Community:
        """Drop a queued join request; a missing request is not an error.

        Raises:
            ForbiddenError: If `approver_id` is neither creator nor authorized person.
        """
        community = self.store.get(community_id)
        self._require_moderator(community, approver_id)

        self.store.remove_join_request(community.id, user_id)
        self.session.commit()
        self.store.refresh(community)
        return community

    def remove_member(
        self,
        community_id: int,
        user_id: int,
        *,
        actor_id: int | None = None,
    ) -> Community:
        """Remove a member from the community.

        Members may remove themselves; removing someone else requires the
        creator or an authorized person when `actor_id` is given.

        Raises:
            NotMemberError: If `user_id` is not a member.
        """
        community = self.store.get(community_id)
        if actor_id is not None and actor_id != user_id:
            self._require_moderator(community, actor_id)

        if not self.store.remove_member(community.id, user_id):
            raise NotMemberError("Not a member of this community")
        self.session.commit()
        self.store.refresh(community)

        self.users.remove_joined_community(user_id, community.id)
        return community

    def follow_community(self, community_id: int, user_id: int) -> Community:
        """Follow a community; there is no approval step.

        Raises:
            AlreadyFollowingError: If the user already follows it.
        """
        community = self.store.get(community_id)
        if not self.store.add_follower(community.id, user_id):
            raise AlreadyFollowingError("Already following")
        self.session.commit()
        self.store.refresh(community)

        self.users.add_following_community(user_id, community.id)
        self.activity.record(user_id, ACTION_FOLLOW, TARGET_COMMUNITY, community.id, community.name)
        return community

    def unfollow_community(self, community_id: int, user_id: int) -> Community:
        """Stop following a community; unfollowing twice is harmless."""
        community = self.store.get(community_id)
        self.store.remove_follower(community.id, user_id)
        self.session.commit()
        self.store.refresh(community)

        self.users.remove_following_community(user_id, community.id)
        return community
