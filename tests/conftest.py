# tests/conftest.py
from __future__ import annotations

import os
import re
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from community_hub.api.v1.dependencies import get_notifier_dep
from community_hub.core.security import create_access_token
from community_hub.db.session import Base
from community_hub.db.session import get_db as app_get_session
from community_hub.db.time import utcnow
from community_hub.main import app as fastapi_app
from community_hub.models import Community, User
from community_hub.models.user import USER_ROLE_ADMIN, USER_ROLE_USER
from community_hub.services.authorization import AuthorizationManager
from community_hub.services.communities import CommunityService
from community_hub.services.membership import MembershipManager
from community_hub.services.notifier import LoggingNotifier

TEST_DB_URL = "sqlite://"

_OTP_PATTERN = re.compile(r"<strong>(\d+)</strong>")


class FakeClock:
    """Controllable replacement for `utcnow` used in expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def notifier() -> LoggingNotifier:
    """Capture outgoing mail instead of sending it."""
    return LoggingNotifier()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def app(db_session: Session, notifier: LoggingNotifier) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    fastapi_app.dependency_overrides[get_notifier_dep] = lambda: notifier
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users."""

    def _make_user(email: str, full_name: str = "", role: str = USER_ROLE_USER) -> User:
        user = User(email=email.lower(), full_name=full_name, role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def creator(make_user: Callable[..., User]) -> User:
    return make_user("creator@example.com", "Community Creator")


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("a@x.com", "Alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("b@x.com", "Bob")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("admin@example.com", "Site Admin", role=USER_ROLE_ADMIN)


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def read_otp(notifier: LoggingNotifier) -> Callable[[str], str]:
    """Return the passcode from the most recent email sent to an address."""

    def _read(email: str) -> str:
        for to_email, _subject, body in reversed(notifier.outbox):
            if to_email == email:
                match = _OTP_PATTERN.search(body)
                assert match is not None, body
                return match.group(1)
        raise AssertionError(f"no email sent to {email}")

    return _read


@pytest.fixture()
def membership(db_session: Session) -> MembershipManager:
    return MembershipManager(db_session)


@pytest.fixture()
def authorization(
    db_session: Session,
    notifier: LoggingNotifier,
    clock: FakeClock,
) -> AuthorizationManager:
    return AuthorizationManager(db_session, notifier=notifier, clock=clock)


@pytest.fixture()
def community_service(
    db_session: Session,
    authorization: AuthorizationManager,
) -> CommunityService:
    return CommunityService(db_session, authorization=authorization)


@pytest.fixture()
def community(community_service: CommunityService, creator: User) -> Community:
    """An active Single community owned by `creator`."""
    return community_service.create_community(
        creator.id,
        name="Rust Enthusiasts",
        description="Systems programming without fear",
        categories=["programming"],
    )


@pytest.fixture()
def pending_community(
    community_service: CommunityService,
    creator: User,
    alice: User,
    bob: User,
) -> Community:
    """A Multi community awaiting confirmation from alice and bob."""
    return community_service.create_community(
        creator.id,
        name="City Council Watch",
        community_type="Multi",
        authorized_emails=[alice.email, bob.email],
    )
