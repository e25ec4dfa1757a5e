# src/community_hub/services/__init__.py
"""Business logic services for the Community Hub application."""

from .activity import ActivityRecorder
from .authorization import ACTIVATION_APPROVAL_THRESHOLD, AuthorizationManager
from .communities import CommunityService
from .community_store import CommunityStore
from .membership import MembershipManager
from .user_directory import UserDirectory

__all__ = [
    "ACTIVATION_APPROVAL_THRESHOLD",
    "ActivityRecorder",
    "AuthorizationManager",
    "CommunityService",
    "CommunityStore",
    "MembershipManager",
    "UserDirectory",
]
