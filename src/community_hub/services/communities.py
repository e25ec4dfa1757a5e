"""Creation, lookup, editing and moderation of communities."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from community_hub.models import Community
from community_hub.models.activity import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_UPDATE,
    TARGET_COMMUNITY,
)
from community_hub.models.community import (
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUS_DISSOLVED,
    COMMUNITY_STATUS_HIDDEN,
    COMMUNITY_STATUS_PENDING,
    COMMUNITY_TYPE_MULTI,
    COMMUNITY_TYPE_SINGLE,
    COMMUNITY_TYPES,
)
from community_hub.services.activity import ActivityRecorder
from community_hub.services.authorization import AuthorizationManager
from community_hub.services.community_store import CommunityStore
from community_hub.services.errors import ConflictError, ForbiddenError, ValidationError
from community_hub.services.user_directory import UserDirectory, normalize_email

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "image", "categories")
MODERATION_TARGETS = (
    COMMUNITY_STATUS_ACTIVE,
    COMMUNITY_STATUS_HIDDEN,
    COMMUNITY_STATUS_DISSOLVED,
)


def _clean_emails(emails: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for email in emails:
        address = normalize_email(email)
        if address and address not in seen:
            seen.append(address)
    return seen


class CommunityService:
    """CRUD over communities plus the administrator moderation action."""

    def __init__(
        self,
        session: Session,
        *,
        users: UserDirectory | None = None,
        activity: ActivityRecorder | None = None,
        authorization: AuthorizationManager | None = None,
    ) -> None:
        self.session = session
        self.store = CommunityStore(session)
        self.users = users or UserDirectory(session)
        self.activity = activity or ActivityRecorder(session)
        self.authorization = authorization or AuthorizationManager(session, users=self.users)

    def _commit_unique_name(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise ConflictError("Community name already exists") from err

    def create_community(
        self,
        creator_id: int,
        *,
        name: str,
        description: str = "",
        community_type: str = COMMUNITY_TYPE_SINGLE,
        image: str = "",
        categories: Iterable[str] = (),
        authorized_emails: Iterable[str] = (),
    ) -> Community:
        """Create a community owned by `creator_id`.

        The creator becomes its first member. A Multi community that names
        approver emails starts Pending and each address is invited; every
        other community starts Active.

        Raises:
            ValidationError: If the name is blank, the type unknown, or a
                Single community names approvers.
            NotFoundError: If the creator is not a registered user.
            ConflictError: If the name is already taken.
        """
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Community name is required")
        if community_type not in COMMUNITY_TYPES:
            raise ValidationError(f"Community type must be one of {', '.join(COMMUNITY_TYPES)}")
        approvers = _clean_emails(authorized_emails)
        if approvers and community_type != COMMUNITY_TYPE_MULTI:
            raise ValidationError("Only Multi communities take authorized persons")

        self.users.find_by_id(creator_id)
        if self.store.get_by_name(clean_name) is not None:
            raise ConflictError("Community name already exists")

        status = COMMUNITY_STATUS_PENDING if approvers else COMMUNITY_STATUS_ACTIVE
        community = self.store.create(
            name=clean_name,
            description=description or "",
            image=image or "",
            categories=list(categories),
            type=community_type,
            creator_id=creator_id,
            status=status,
        )
        self.store.add_member(community.id, creator_id)
        self._commit_unique_name()
        self.store.refresh(community)

        self.users.add_joined_community(creator_id, community.id)
        for address in approvers:
            self.authorization.invite_authorized_person(community.id, creator_id, address)

        self.activity.record(creator_id, ACTION_CREATE, TARGET_COMMUNITY, community.id, community.name)
        logger.info("Created %s community %s (%s)", community.type, community.id, community.status)
        return self.store.refresh(community)

    def get_community(self, community_id: int) -> Community:
        return self.store.get(community_id)

    def list_communities(self, **filters: Any) -> list[Community]:
        return self.store.list_communities(**filters)

    def update_community(
        self,
        actor_id: int,
        community_id: int,
        changes: dict[str, Any],
    ) -> Community:
        """Apply creator edits to name, description, image and categories.

        Raises:
            ForbiddenError: If `actor_id` is not the creator.
            ValidationError: If the new name is blank.
            ConflictError: If the new name belongs to another community.
        """
        community = self.store.get(community_id)
        if community.creator_id != actor_id:
            raise ForbiddenError("Only creator can update the community")

        updates = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
        if "name" in updates:
            clean_name = (updates["name"] or "").strip()
            if not clean_name:
                raise ValidationError("Community name is required")
            existing = self.store.get_by_name(clean_name)
            if existing is not None and existing.id != community.id:
                raise ConflictError("Community name already exists")
            updates["name"] = clean_name
        if "categories" in updates:
            updates["categories"] = list(updates["categories"] or [])

        for key, value in updates.items():
            setattr(community, key, "" if value is None else value)
        self._commit_unique_name()
        self.store.refresh(community)

        if updates:
            self.activity.record(
                actor_id, ACTION_UPDATE, TARGET_COMMUNITY, community.id, ", ".join(sorted(updates))
            )
        return community

    def delete_community(self, actor_id: int, community_id: int) -> None:
        """Delete a community; allowed for its creator and administrators.

        Raises:
            ForbiddenError: If `actor_id` is neither creator nor admin.
        """
        community = self.store.get(community_id)
        if community.creator_id != actor_id and not self.users.find_by_id(actor_id).is_admin:
            raise ForbiddenError("Only creator or admin can delete the community")

        name = community.name
        self.store.delete(community)
        self.session.commit()
        self.users.forget_community(community_id)

        self.activity.record(actor_id, ACTION_DELETE, TARGET_COMMUNITY, community_id, name)
        logger.info("Deleted community %s", community_id)

    def moderate_community(self, actor_id: int, community_id: int, status: str) -> Community:
        """Set an administrative status: hide, dissolve, or restore a hidden community.

        Raises:
            ForbiddenError: If `actor_id` is not an administrator.
            ValidationError: If the target status is not allowed from the current one.
        """
        if not self.users.find_by_id(actor_id).is_admin:
            raise ForbiddenError("Only administrators can moderate communities")
        if status not in MODERATION_TARGETS:
            raise ValidationError(
                f"Status must be one of {', '.join(MODERATION_TARGETS)}"
            )

        community = self.store.get(community_id)
        if status == COMMUNITY_STATUS_ACTIVE and community.status != COMMUNITY_STATUS_HIDDEN:
            raise ValidationError("Only hidden communities can be restored")
        # Hidden always restores to Active, so only active communities may be hidden.
        if status == COMMUNITY_STATUS_HIDDEN and community.status != COMMUNITY_STATUS_ACTIVE:
            raise ValidationError("Only active communities can be hidden")

        self.store.set_status(community.id, status)
        self.session.commit()
        self.store.refresh(community)
        logger.info("Community %s moderated to %s by %s", community.id, status, actor_id)
        return community
