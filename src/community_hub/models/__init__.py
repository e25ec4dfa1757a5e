# src/community_hub/models/__init__.py
"""SQLAlchemy models for the Community Hub application."""

from .activity import ActivityLog
from .community import (
    AuthorizationInvite,
    Community,
    CommunityAuthorizedPerson,
    CommunityFollower,
    CommunityJoinRequest,
    CommunityMember,
)
from .user import User, UserFollowingCommunity, UserJoinedCommunity

__all__ = [
    "ActivityLog",
    "AuthorizationInvite",
    "Community", "CommunityAuthorizedPerson", "CommunityFollower",
    "CommunityJoinRequest", "CommunityMember",
    "User", "UserFollowingCommunity", "UserJoinedCommunity",
]
