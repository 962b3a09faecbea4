# tests/v1/test_likes.py
"""Tests for like endpoints."""

from fastapi import status
from sqlalchemy import func, select

from instafeed.models import Like


def _like_count(db_session, post_id: str) -> int:
    return db_session.scalar(select(func.count()).select_from(Like).where(Like.post_id == post_id))


def test_like_post(client, auth_token, test_post, test_user) -> None:
    response = client.post("/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    assert body["like"]["post_id"] == test_post.id
    assert body["like"]["user_id"] == test_user.id


def test_double_like_conflicts(client, auth_token, test_post, db_session) -> None:
    """A second like is rejected and leaves exactly one row."""
    first = client.post("/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)
    second = client.post("/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)

    assert first.status_code == status.HTTP_201_CREATED
    assert second.status_code == status.HTTP_409_CONFLICT
    assert second.json() == {"error": "Already liked"}
    assert _like_count(db_session, test_post.id) == 1


def test_like_missing_post(client, auth_token) -> None:
    response = client.post("/api/v1/likes", json={"post_id": "missing"}, headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Post not found"}


def test_like_requires_post_id(client, auth_token) -> None:
    response = client.post("/api/v1/likes", json={}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "post_id is required"}


def test_like_requires_auth(client, test_post) -> None:
    response = client.post("/api/v1/likes", json={"post_id": test_post.id})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_unlike_post(client, auth_token, test_post, test_user, add_like, db_session) -> None:
    add_like(test_post, test_user)

    response = client.request(
        "DELETE", "/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "message": "Like removed"}
    assert _like_count(db_session, test_post.id) == 0


def test_unlike_without_like_succeeds(client, auth_token, test_post) -> None:
    response = client.request(
        "DELETE", "/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK


def test_unlike_only_removes_own_like(
    client, auth_token, test_post, other_user, add_like, db_session
) -> None:
    add_like(test_post, other_user)
    client.request("DELETE", "/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)
    assert _like_count(db_session, test_post.id) == 1


def test_likes_count_tracks_rows(client, auth_token, other_auth_token, test_post) -> None:
    client.post("/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)
    client.post("/api/v1/likes", json={"post_id": test_post.id}, headers=other_auth_token)

    data = client.get(f"/api/v1/posts/{test_post.id}").json()["data"]
    assert data["likes_count"] == 2

    client.request("DELETE", "/api/v1/likes", json={"post_id": test_post.id}, headers=auth_token)
    data = client.get(f"/api/v1/posts/{test_post.id}").json()["data"]
    assert data["likes_count"] == 1
