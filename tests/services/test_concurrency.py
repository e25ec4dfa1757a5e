"""Concurrent writers against a file-backed SQLite database."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from community_hub.db.session import Base, use_immediate_transactions
from community_hub.models import Community, CommunityMember, User
from community_hub.services.community_store import CommunityStore
from community_hub.services.membership import MembershipManager

APPROVALS = 8


@pytest.fixture()
def file_sessions(tmp_path):
    engine = use_immediate_transactions(
        create_engine(
            f"sqlite:///{tmp_path / 'concurrency.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False)
    finally:
        engine.dispose()


def test_parallel_approvals_lose_no_updates(file_sessions) -> None:
    with file_sessions() as session:
        creator = User(email="creator@example.com")
        session.add(creator)
        session.flush()
        community = Community(name="Busy", creator_id=creator.id, status="Active")
        session.add(community)
        session.flush()
        session.add(CommunityMember(community_id=community.id, user_id=creator.id))
        users = [User(email=f"requester{n}@example.com") for n in range(APPROVALS)]
        session.add_all(users)
        session.commit()
        community_id = community.id
        requesters = [user.id for user in users]

    def approve(user_id: int) -> None:
        with file_sessions() as session:
            MembershipManager(session).approve_join_request(community_id, user_id)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(approve, requesters))

    with file_sessions() as session:
        store = CommunityStore(session)
        community = store.get(community_id)
        assert community.members_count == 1 + APPROVALS
        assert store.member_ids(community_id) == {*requesters, community.creator_id}


def test_parallel_follows_and_unfollows_keep_count_exact(file_sessions) -> None:
    with file_sessions() as session:
        creator = User(email="creator@example.com")
        session.add(creator)
        session.flush()
        community = Community(name="Crowd", creator_id=creator.id, status="Active")
        session.add(community)
        session.commit()
        community_id = community.id

    followers = list(range(2000, 2000 + APPROVALS))

    def follow(user_id: int) -> None:
        with file_sessions() as session:
            MembershipManager(session).follow_community(community_id, user_id)

    def unfollow(user_id: int) -> None:
        with file_sessions() as session:
            MembershipManager(session).unfollow_community(community_id, user_id)

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(follow, followers))
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(unfollow, followers[: APPROVALS // 2]))

    with file_sessions() as session:
        community = CommunityStore(session).get(community_id)
        assert community.followers_count == APPROVALS - APPROVALS // 2
