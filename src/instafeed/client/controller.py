"""View-model controllers for the feed, post modal and profile screens.

Each controller owns one state value from :mod:`instafeed.client.state` and
replaces it through reducers. Optimistic actions patch the state before the
request and revert the patch if it fails; the failure is logged, not raised.
Requests are awaited to completion; nothing is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import replace

from .api import ApiClientError, FeedApiClient
from .state import (
    FeedState,
    FeedStatus,
    ModalState,
    ProfileState,
    begin_initial_load,
    begin_load_more,
    comment_added,
    comment_removed,
    comments_count_changed,
    follow_toggled,
    initial_loaded,
    like_toggled,
    likes_count_changed,
    load_failed,
    modal_loaded,
    page_appended,
    post_removed,
    toggle_post_like,
)

logger = logging.getLogger(__name__)

PostChangeCallback = Callable[..., None]

DEFAULT_PAGE_SIZE = 10
DEFAULT_COMMENTS_LIMIT = 50


class FeedController:
    """Infinite-scroll list of posts, optionally limited to one owner."""

    def __init__(
        self,
        api: FeedApiClient,
        *,
        owner_id: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.api = api
        self.owner_id = owner_id
        self.page_size = page_size
        self.viewer_id: str | None = None
        self.state = FeedState()

    async def _fetch_viewer_id(self) -> str | None:
        try:
            profile = await self.api.get_profile("me")
        except ApiClientError as exc:
            logger.warning("Could not look up the current user: %s", exc.message)
            return None
        return profile.id

    async def load_initial(self) -> None:
        """Load the first page; the viewer lookup runs alongside it."""
        self.state = begin_initial_load(self.state)
        page_result, viewer_result = await asyncio.gather(
            self.api.list_posts(limit=self.page_size, offset=0, user_id=self.owner_id),
            self._fetch_viewer_id(),
            return_exceptions=True,
        )
        for result in (page_result, viewer_result):
            if isinstance(result, BaseException) and not isinstance(result, ApiClientError):
                raise result

        if isinstance(viewer_result, str):
            self.viewer_id = viewer_result

        if isinstance(page_result, ApiClientError):
            self.state = load_failed(self.state, page_result.message)
        else:
            self.state = initial_loaded(self.state, page_result)

    async def retry(self) -> None:
        """Reload from the first page after an error."""
        await self.load_initial()

    async def on_sentinel_visible(self) -> None:
        """Fetch the next page when the end of the list scrolls into view.

        Ignored unless the list is loaded and the server reported more posts,
        which also drops repeated triggers while a page is in flight.
        """
        if self.state.status is not FeedStatus.LOADED or not self.state.has_more:
            return

        self.state = begin_load_more(self.state)
        try:
            page = await self.api.list_posts(
                limit=self.page_size,
                offset=self.state.offset,
                user_id=self.owner_id,
            )
        except ApiClientError as exc:
            self.state = load_failed(self.state, exc.message)
            return
        self.state = page_appended(self.state, page)

    async def toggle_like(self, post_id: str) -> bool:
        """Flip the viewer's like on a post; returns False if the request was rolled back."""
        post = self.state.find(post_id)
        if post is None:
            return False

        previous = post.is_liked
        liked = not previous
        self.state = like_toggled(self.state, post_id, liked)
        try:
            if liked:
                await self.api.like(post_id)
            else:
                await self.api.unlike(post_id)
        except ApiClientError as exc:
            logger.warning("Like toggle on %s failed, reverting: %s", post_id, exc.message)
            self.state = like_toggled(self.state, post_id, previous)
            return False
        return True

    def can_delete(self, post_id: str) -> bool:
        post = self.state.find(post_id)
        return post is not None and self.viewer_id is not None and post.user_id == self.viewer_id

    async def delete_post(self, post_id: str) -> None:
        """Delete a post on the server, then drop it from the list.

        Raises:
            ApiClientError: The server refused or the request failed
        """
        await self.api.delete_post(post_id)
        self.state = post_removed(self.state, post_id)

    def on_post_change(
        self,
        post_id: str,
        *,
        likes: int | None = None,
        comments: int | None = None,
        liked: bool | None = None,
    ) -> None:
        """Apply count changes reported by an open post modal."""
        if likes is not None:
            self.state = likes_count_changed(self.state, post_id, likes, liked)
        if comments is not None:
            self.state = comments_count_changed(self.state, post_id, comments)

    def open_modal(self, post_id: str) -> PostModalController:
        """Create a modal for ``post_id`` that reports back to this feed."""
        return PostModalController(
            self.api,
            post_id,
            post_ids=self.state.post_ids,
            on_change=self.on_post_change,
        )


class PostModalController:
    """Detail view of one post with its comments.

    The modal fetches its own copy of the post and never reads the feed's;
    count changes flow back through ``on_change``.
    """

    def __init__(
        self,
        api: FeedApiClient,
        post_id: str,
        *,
        post_ids: Sequence[str] = (),
        on_change: PostChangeCallback | None = None,
        comments_limit: int = DEFAULT_COMMENTS_LIMIT,
    ) -> None:
        self.api = api
        self.post_ids = list(post_ids)
        self.on_change = on_change
        self.comments_limit = comments_limit
        self.state = ModalState(post_id=post_id)

    @property
    def post_id(self) -> str:
        return self.state.post_id

    def _neighbour(self, step: int) -> str | None:
        try:
            index = self.post_ids.index(self.post_id)
        except ValueError:
            return None
        target = index + step
        if 0 <= target < len(self.post_ids):
            return self.post_ids[target]
        return None

    @property
    def previous_id(self) -> str | None:
        return self._neighbour(-1)

    @property
    def next_id(self) -> str | None:
        return self._neighbour(1)

    async def load(self) -> None:
        """Fetch the post and its comments concurrently."""
        self.state = ModalState(post_id=self.post_id, loading=True)
        post_result, comments_result = await asyncio.gather(
            self.api.get_post(self.post_id),
            self.api.list_comments(self.post_id, limit=self.comments_limit),
            return_exceptions=True,
        )
        for result in (post_result, comments_result):
            if isinstance(result, BaseException) and not isinstance(result, ApiClientError):
                raise result

        if isinstance(post_result, ApiClientError):
            self.state = ModalState(post_id=self.post_id, error=post_result.message)
            return
        if isinstance(comments_result, ApiClientError):
            logger.warning("Comments for %s failed to load: %s", self.post_id, comments_result.message)
            comments_result = None
        self.state = modal_loaded(self.state, post_result, comments_result)

    async def show(self, post_id: str) -> None:
        """Switch the modal to another post and load it."""
        self.state = ModalState(post_id=post_id)
        await self.load()

    async def show_previous(self) -> None:
        if self.previous_id is not None:
            await self.show(self.previous_id)

    async def show_next(self) -> None:
        if self.next_id is not None:
            await self.show(self.next_id)

    def _report(self, post_id: str, **changes: object) -> None:
        if self.on_change is not None:
            self.on_change(post_id, **changes)

    def _is_showing(self, post_id: str) -> bool:
        return self.state.post_id == post_id and self.state.post is not None

    async def toggle_like(self) -> bool:
        """Flip the like on the shown post.

        The result is tied to the post the toggle started on, even if the
        modal has moved to another post by the time the request finishes.
        """
        post = self.state.post
        if post is None:
            return False

        post_id = post.id
        liked = not post.is_liked
        updated = toggle_post_like(post, liked)
        self.state = replace(self.state, post=updated)
        try:
            if liked:
                await self.api.like(post_id)
            else:
                await self.api.unlike(post_id)
        except ApiClientError as exc:
            logger.warning("Like toggle on %s failed, reverting: %s", post_id, exc.message)
            if self._is_showing(post_id):
                self.state = replace(
                    self.state, post=toggle_post_like(self.state.post, post.is_liked)
                )
            return False

        self._report(post_id, likes=updated.likes_count, liked=liked)
        return True

    async def add_comment(self, content: str) -> bool:
        """Post a comment; blank input is ignored without a request.

        Raises:
            ApiClientError: The server rejected the comment
        """
        content = content.strip()
        post = self.state.post
        if not content or post is None:
            return False

        post_id = post.id
        comment = await self.api.add_comment(post_id, content)
        if self._is_showing(post_id):
            self.state = comment_added(self.state, comment)
            comments_count = self.state.post.comments_count
        else:
            comments_count = post.comments_count + 1
        self._report(post_id, comments=comments_count)
        return True

    async def delete_comment(self, comment_id: str) -> None:
        """Delete one of the viewer's comments.

        Raises:
            ApiClientError: The server refused or the request failed
        """
        snapshot = self.state
        post = snapshot.post
        await self.api.delete_comment(comment_id)
        if post is None or not any(comment.id == comment_id for comment in snapshot.comments):
            return

        if self._is_showing(post.id):
            self.state = comment_removed(self.state, comment_id)
            comments_count = self.state.post.comments_count
        else:
            comments_count = max(0, post.comments_count - 1)
        self._report(post.id, comments=comments_count)


class ProfileController:
    """Profile header with a follow button."""

    def __init__(self, api: FeedApiClient, user_id: str = "me") -> None:
        self.api = api
        self.user_id = user_id
        self.state = ProfileState()

    async def load(self) -> None:
        self.state = ProfileState(profile=self.state.profile, loading=True)
        try:
            profile = await self.api.get_profile(self.user_id)
        except ApiClientError as exc:
            self.state = ProfileState(error=exc.message)
            return
        self.state = ProfileState(profile=profile)

    async def toggle_follow(self) -> bool:
        """Follow or unfollow the shown user; returns False if rolled back or not applicable."""
        profile = self.state.profile
        if profile is None or profile.is_own_profile or profile.is_following is None:
            return False

        previous = profile.is_following
        following = not previous
        self.state = follow_toggled(self.state, following)
        try:
            if following:
                await self.api.follow(profile.id)
            else:
                await self.api.unfollow(profile.id)
        except ApiClientError as exc:
            logger.warning("Follow toggle on %s failed, reverting: %s", profile.id, exc.message)
            self.state = follow_toggled(self.state, previous)
            return False
        return True
