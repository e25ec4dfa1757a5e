"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from community_hub.core.security import decode_subject
from community_hub.db.session import get_db
from community_hub.models import User
from community_hub.services.authorization import AuthorizationManager
from community_hub.services.communities import CommunityService
from community_hub.services.membership import MembershipManager
from community_hub.services.notifier import Notifier, get_notifier

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        user_id = decode_subject(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_notifier_dep() -> Notifier:
    return get_notifier()


NotifierDep = Annotated[Notifier, Depends(get_notifier_dep)]


def get_membership_manager(db: SessionDep) -> MembershipManager:
    return MembershipManager(db)


def get_authorization_manager(db: SessionDep, notifier: NotifierDep) -> AuthorizationManager:
    return AuthorizationManager(db, notifier=notifier)


AuthorizationDep = Annotated[AuthorizationManager, Depends(get_authorization_manager)]


def get_community_service(db: SessionDep, authorization: AuthorizationDep) -> CommunityService:
    return CommunityService(db, authorization=authorization)


MembershipDep = Annotated[MembershipManager, Depends(get_membership_manager)]
CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]
