"""Async HTTP client for the instafeed API.

Responses are parsed into the same pydantic schemas the server emits. Any
non-2xx response, or a transport failure, raises :class:`ApiClientError`
carrying the server's ``error`` message when there is one.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from instafeed.schemas.comment import CommentListResponse, CommentWithUser
from instafeed.schemas.post import PostListResponse, PostResponse, PostWithUser
from instafeed.schemas.user import Profile, UserPublic

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_ERROR = "Request failed"


class ApiClientError(RuntimeError):
    """Raised when an API call fails.

    ``status_code`` is None when the request never produced a response.
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or DEFAULT_ERROR
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return DEFAULT_ERROR


class FeedApiClient:
    """Thin wrapper over the HTTP API used by the feed, modal and profile screens."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        # Requests are never timed out or cancelled by the client.
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + API_PREFIX,
            headers=headers,
            timeout=None,
            transport=transport,
        )

    async def __aenter__(self) -> FeedApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiClientError(None, str(exc) or DEFAULT_ERROR) from exc

        if response.is_error:
            raise ApiClientError(response.status_code, _error_message(response))
        return response.json()

    # Posts

    async def list_posts(
        self,
        *,
        limit: int = 10,
        offset: int = 0,
        user_id: str | None = None,
    ) -> PostListResponse:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if user_id is not None:
            params["userId"] = user_id
        payload = await self._request("GET", "/posts", params=params)
        return PostListResponse.model_validate(payload)

    async def get_post(self, post_id: str) -> PostWithUser:
        payload = await self._request("GET", f"/posts/{post_id}")
        return PostWithUser.model_validate(payload["data"])

    async def create_post(
        self,
        image: bytes,
        *,
        filename: str,
        content_type: str,
        caption: str | None = None,
    ) -> PostResponse:
        data = {"caption": caption} if caption is not None else None
        payload = await self._request(
            "POST",
            "/posts",
            files={"image": (filename, image, content_type)},
            data=data,
        )
        return PostResponse.model_validate(payload["post"])

    async def delete_post(self, post_id: str) -> None:
        await self._request("DELETE", f"/posts/{post_id}")

    # Likes

    async def like(self, post_id: str) -> None:
        await self._request("POST", "/likes", json={"post_id": post_id})

    async def unlike(self, post_id: str) -> None:
        await self._request("DELETE", "/likes", json={"post_id": post_id})

    # Comments

    async def list_comments(
        self,
        post_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> CommentListResponse:
        payload = await self._request(
            "GET",
            "/comments",
            params={"post_id": post_id, "limit": limit, "offset": offset},
        )
        return CommentListResponse.model_validate(payload)

    async def add_comment(self, post_id: str, content: str) -> CommentWithUser:
        payload = await self._request(
            "POST", "/comments", json={"post_id": post_id, "content": content}
        )
        return CommentWithUser.model_validate(payload["comment"])

    async def delete_comment(self, comment_id: str) -> None:
        await self._request("DELETE", "/comments", json={"comment_id": comment_id})

    # Follows and profiles

    async def follow(self, user_id: str) -> None:
        await self._request("POST", "/follows", json={"following_id": user_id})

    async def unfollow(self, user_id: str) -> None:
        await self._request("DELETE", "/follows", json={"following_id": user_id})

    async def get_profile(self, user_id: str = "me") -> Profile:
        payload = await self._request("GET", f"/users/{user_id}")
        return Profile.model_validate(payload["data"])

    async def sync_user(self) -> UserPublic:
        payload = await self._request("POST", "/users/sync")
        return UserPublic.model_validate(payload)
