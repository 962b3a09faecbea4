# tests/v1/test_follows.py
"""Tests for follow endpoints."""

from fastapi import status
from sqlalchemy import func, select

from instafeed.models import Follow


def _followers(client, user_id: str) -> int:
    return client.get(f"/api/v1/users/{user_id}").json()["data"]["followers_count"]


def test_follow_user(client, auth_token, test_user, other_user) -> None:
    response = client.post(
        "/api/v1/follows", json={"following_id": other_user.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_201_CREATED
    follow = response.json()["follow"]
    assert follow["follower_id"] == test_user.id
    assert follow["following_id"] == other_user.id


def test_cannot_follow_self(client, auth_token, test_user, db_session) -> None:
    response = client.post(
        "/api/v1/follows", json={"following_id": test_user.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Cannot follow yourself"}
    assert db_session.scalar(select(func.count()).select_from(Follow)) == 0


def test_follow_unknown_user(client, auth_token) -> None:
    response = client.post("/api/v1/follows", json={"following_id": "ghost"}, headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Target user not found"}


def test_duplicate_follow_rejected(client, auth_token, other_user, add_follow, test_user, db_session) -> None:
    add_follow(test_user, other_user)
    response = client.post(
        "/api/v1/follows", json={"following_id": other_user.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Already following this user"}
    assert db_session.scalar(select(func.count()).select_from(Follow)) == 1


def test_follow_unfollow_round_trip_restores_count(client, auth_token, other_user) -> None:
    before = _followers(client, other_user.id)

    client.post("/api/v1/follows", json={"following_id": other_user.id}, headers=auth_token)
    assert _followers(client, other_user.id) == before + 1

    response = client.request(
        "DELETE", "/api/v1/follows", json={"following_id": other_user.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "message": "Unfollowed successfully"}
    assert _followers(client, other_user.id) == before


def test_unfollow_never_followed(client, auth_token, other_user) -> None:
    response = client.request(
        "DELETE", "/api/v1/follows", json={"following_id": other_user.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Follow relationship not found"}


def test_follow_requires_auth(client, other_user) -> None:
    response = client.post("/api/v1/follows", json={"following_id": other_user.id})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
