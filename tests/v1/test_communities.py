# tests/v1/test_communities.py
"""Tests for community-related endpoints."""

import inspect

import pytest
from fastapi import status

from community_hub.api.v1.endpoints import communities as communities_endpoints


def _create(client, headers, **payload):
    body = {"name": "Rust Enthusiasts", "description": "Systems programming"}
    body.update(payload)
    return client.post("/api/v1/communities/", json=body, headers=headers)


def test_create_community(client, creator, auth_headers) -> None:
    """Test creating a new community."""
    response = _create(client, auth_headers(creator), categories=["programming"])
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Rust Enthusiasts"
    assert data["status"] == "Active"
    assert data["members_count"] == 1
    assert data["creator_id"] == creator.id
    assert data["categories"] == ["programming"]


def test_create_requires_auth(client) -> None:
    response = _create(client, {})
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_create_duplicate_community(client, community, creator, auth_headers) -> None:
    """Test creating a community with a duplicate name."""
    response = _create(client, auth_headers(creator))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"detail": "Community name already exists", "kind": "Conflict"}


def test_create_single_with_approvers_is_rejected(client, creator, auth_headers) -> None:
    response = _create(client, auth_headers(creator), authorized_emails=["a@x.com"])
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["kind"] == "ValidationError"


def test_list_and_get_community(client, community) -> None:
    response = client.get("/api/v1/communities/")
    assert response.status_code == status.HTTP_200_OK
    assert [c["id"] for c in response.json()] == [community.id]

    detail = client.get(f"/api/v1/communities/{community.id}")
    assert detail.status_code == status.HTTP_200_OK
    data = detail.json()
    assert data["members"] == [community.creator_id]
    assert data["followers"] == []
    assert data["join_requests"] == []
    assert data["pending_authorized_persons"] == []


def test_list_filters_by_status(client, community, pending_community) -> None:
    response = client.get("/api/v1/communities/", params={"status": "Pending"})
    assert [c["id"] for c in response.json()] == [pending_community.id]


def test_get_nonexistent_community(client) -> None:
    """Test getting a non-existent community."""
    response = client.get("/api/v1/communities/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Community not found", "kind": "NotFound"}


def test_join_approve_flow(client, community, creator, alice, auth_headers) -> None:
    joined = client.post(f"/api/v1/communities/{community.id}/join", headers=auth_headers(alice))
    assert joined.status_code == status.HTTP_202_ACCEPTED
    assert joined.json() == {"community_id": community.id, "status": "requested"}

    again = client.post(f"/api/v1/communities/{community.id}/join", headers=auth_headers(alice))
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["kind"] == "DuplicateRequest"

    approved = client.post(
        f"/api/v1/communities/{community.id}/requests/approve",
        json={"user_id": alice.id},
        headers=auth_headers(creator),
    )
    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["members_count"] == 2

    late_reject = client.post(
        f"/api/v1/communities/{community.id}/requests/reject",
        json={"user_id": alice.id},
        headers=auth_headers(creator),
    )
    assert late_reject.status_code == status.HTTP_200_OK
    assert late_reject.json()["members_count"] == 2
    detail = client.get(f"/api/v1/communities/{community.id}").json()
    assert detail["members"] == sorted([creator.id, alice.id])
    assert detail["join_requests"] == []

    member_again = client.post(
        f"/api/v1/communities/{community.id}/join", headers=auth_headers(alice)
    )
    assert member_again.status_code == status.HTTP_409_CONFLICT
    assert member_again.json() == {"detail": "Already a member", "kind": "AlreadyMember"}


def test_approve_unknown_user(client, community, creator, auth_headers) -> None:
    response = client.post(
        f"/api/v1/communities/{community.id}/requests/approve",
        json={"user_id": 999999},
        headers=auth_headers(creator),
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "User not found", "kind": "NotFound"}
    assert client.get(f"/api/v1/communities/{community.id}").json()["members"] == [creator.id]


def test_non_moderator_cannot_approve(client, community, alice, bob, auth_headers) -> None:
    client.post(f"/api/v1/communities/{community.id}/join", headers=auth_headers(alice))
    response = client.post(
        f"/api/v1/communities/{community.id}/requests/approve",
        json={"user_id": alice.id},
        headers=auth_headers(bob),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["kind"] == "Forbidden"


def test_reject_join_request(client, community, creator, alice, auth_headers) -> None:
    client.post(f"/api/v1/communities/{community.id}/join", headers=auth_headers(alice))
    response = client.post(
        f"/api/v1/communities/{community.id}/requests/reject",
        json={"user_id": alice.id},
        headers=auth_headers(creator),
    )
    assert response.status_code == status.HTTP_200_OK

    detail = client.get(f"/api/v1/communities/{community.id}").json()
    assert detail["join_requests"] == []
    assert detail["members"] == [creator.id]


def test_leave_and_remove_member(client, community, membership, alice, auth_headers) -> None:
    membership.approve_join_request(community.id, alice.id)

    left = client.delete(
        f"/api/v1/communities/{community.id}/members/{alice.id}", headers=auth_headers(alice)
    )
    assert left.status_code == status.HTTP_200_OK
    assert left.json()["members_count"] == 1

    missing = client.delete(
        f"/api/v1/communities/{community.id}/members/{alice.id}", headers=auth_headers(alice)
    )
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["kind"] == "NotMember"


def test_follow_unfollow(client, community, alice, auth_headers) -> None:
    followed = client.post(f"/api/v1/communities/{community.id}/follow", headers=auth_headers(alice))
    assert followed.status_code == status.HTTP_200_OK
    assert followed.json()["followers_count"] == 1

    twice = client.post(f"/api/v1/communities/{community.id}/follow", headers=auth_headers(alice))
    assert twice.status_code == status.HTTP_409_CONFLICT
    assert twice.json()["kind"] == "AlreadyFollowing"

    unfollowed = client.delete(
        f"/api/v1/communities/{community.id}/follow", headers=auth_headers(alice)
    )
    assert unfollowed.json()["followers_count"] == 0


def test_multi_approver_activation(
    client, creator, alice, bob, auth_headers, read_otp
) -> None:
    created = _create(
        client,
        auth_headers(creator),
        name="City Council Watch",
        type="Multi",
        authorized_emails=["a@x.com", "b@x.com"],
    )
    assert created.status_code == status.HTTP_201_CREATED
    community_id = created.json()["id"]
    assert created.json()["status"] == "Pending"

    detail = client.get(f"/api/v1/communities/{community_id}").json()
    assert [p["email"] for p in detail["pending_authorized_persons"]] == ["a@x.com", "b@x.com"]
    assert all("otp" not in p for p in detail["pending_authorized_persons"])

    first = client.post(
        f"/api/v1/communities/{community_id}/authorized/verify",
        json={"otp": read_otp("a@x.com")},
        headers=auth_headers(alice),
    )
    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {
        "community_id": community_id,
        "status": "Pending",
        "approval_count": 1,
        "activated": False,
        "is_active": False,
    }

    second = client.post(
        f"/api/v1/communities/{community_id}/authorized/verify",
        json={"otp": read_otp("b@x.com")},
        headers=auth_headers(bob),
    )
    assert second.json()["status"] == "Active"
    assert second.json()["activated"] is True

    detail = client.get(f"/api/v1/communities/{community_id}").json()
    assert detail["authorized_persons"] == sorted([alice.id, bob.id])
    assert detail["pending_authorized_persons"] == []


def test_invite_resend_and_forbidden(
    client, pending_community, creator, alice, auth_headers
) -> None:
    resent = client.post(
        f"/api/v1/communities/{pending_community.id}/authorized/invite",
        json={"email": "a@x.com"},
        headers=auth_headers(creator),
    )
    assert resent.status_code == status.HTTP_200_OK
    assert resent.json()["resent"] is True
    assert resent.json()["user_id"] == alice.id

    forbidden = client.post(
        f"/api/v1/communities/{pending_community.id}/authorized/invite",
        json={"email": "c@x.com"},
        headers=auth_headers(alice),
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert forbidden.json() == {"detail": "Only creator can invite", "kind": "Forbidden"}


def test_invalid_authorization_otp(client, pending_community, alice, auth_headers, read_otp) -> None:
    real = read_otp("a@x.com")
    response = client.post(
        f"/api/v1/communities/{pending_community.id}/authorized/verify",
        json={"otp": "000000" if real != "000000" else "111111"},
        headers=auth_headers(alice),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["kind"] == "InvalidOTP"


def test_domain_email_verification(client, community, creator, auth_headers, read_otp) -> None:
    sent = client.post(
        f"/api/v1/communities/{community.id}/verify-email/send",
        json={"domain_email": "team@rust.example"},
        headers=auth_headers(creator),
    )
    assert sent.status_code == status.HTTP_200_OK
    assert sent.json()["domain_email"] == "team@rust.example"
    assert sent.json()["delivered"] is True

    confirmed = client.post(
        f"/api/v1/communities/{community.id}/verify-email/confirm",
        json={"otp": read_otp("team@rust.example")},
        headers=auth_headers(creator),
    )
    assert confirmed.status_code == status.HTTP_200_OK
    assert confirmed.json()["is_email_verified"] is True


def test_update_and_delete(client, community, creator, alice, auth_headers) -> None:
    forbidden = client.patch(
        f"/api/v1/communities/{community.id}",
        json={"description": "mine now"},
        headers=auth_headers(alice),
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    updated = client.patch(
        f"/api/v1/communities/{community.id}",
        json={"description": "Fearless concurrency"},
        headers=auth_headers(creator),
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["description"] == "Fearless concurrency"

    deleted = client.delete(f"/api/v1/communities/{community.id}", headers=auth_headers(creator))
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/communities/{community.id}").status_code == 404


def test_admin_moderation(client, community, creator, admin, auth_headers) -> None:
    denied = client.patch(
        f"/api/v1/communities/{community.id}/status",
        json={"status": "Hidden"},
        headers=auth_headers(creator),
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    hidden = client.patch(
        f"/api/v1/communities/{community.id}/status",
        json={"status": "Hidden"},
        headers=auth_headers(admin),
    )
    assert hidden.status_code == status.HTTP_200_OK
    assert hidden.json()["status"] == "Hidden"


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize(
    "handler",
    [
        communities_endpoints.create_community,
        communities_endpoints.invite_authorized_person,
        communities_endpoints.send_email_verification,
    ],
)
def test_mail_sending_handlers_run_in_threadpool(handler) -> None:
    """Handlers that may block on SMTP must not run on the event loop."""
    assert not inspect.iscoroutinefunction(handler)
