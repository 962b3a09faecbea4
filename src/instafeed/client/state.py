"""Immutable screen state for the feed, post modal and profile header.

Every reducer takes a state plus an event payload and returns a new state;
inputs are never mutated. Controllers own the current state and swap it for
the reducer's result.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from instafeed.schemas.comment import CommentListResponse, CommentWithUser
from instafeed.schemas.post import PostListResponse, PostWithUser
from instafeed.schemas.user import Profile

__all__ = [
    "FeedState",
    "FeedStatus",
    "ModalState",
    "ProfileState",
    "begin_initial_load",
    "begin_load_more",
    "comment_added",
    "comment_removed",
    "comments_count_changed",
    "follow_toggled",
    "initial_loaded",
    "like_toggled",
    "likes_count_changed",
    "load_failed",
    "modal_loaded",
    "page_appended",
    "post_removed",
    "toggle_post_like",
]


class FeedStatus(Enum):
    """Lifecycle of the feed list."""

    IDLE = "idle"
    LOADING_INITIAL = "loading-initial"
    LOADING_MORE = "loading-more"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class FeedState:
    """Posts shown in the feed plus pagination bookkeeping.

    ``offset`` counts the posts already received, so it advances by the size
    of each page rather than by the requested limit.
    """

    status: FeedStatus = FeedStatus.IDLE
    posts: tuple[PostWithUser, ...] = ()
    has_more: bool = True
    offset: int = 0
    error: str | None = None

    @property
    def post_ids(self) -> list[str]:
        return [post.id for post in self.posts]

    def find(self, post_id: str) -> PostWithUser | None:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None


@dataclass(frozen=True)
class ModalState:
    """One post and its comments, held independently of the feed list."""

    post_id: str
    post: PostWithUser | None = None
    comments: tuple[CommentWithUser, ...] = ()
    loading: bool = False
    error: str | None = None


@dataclass(frozen=True)
class ProfileState:
    profile: Profile | None = None
    loading: bool = False
    error: str | None = None


def _replace_post(state: FeedState, post_id: str, post: PostWithUser) -> FeedState:
    posts = tuple(post if existing.id == post_id else existing for existing in state.posts)
    return replace(state, posts=posts)


# Feed lifecycle


def begin_initial_load(state: FeedState) -> FeedState:
    return replace(state, status=FeedStatus.LOADING_INITIAL, error=None)


def initial_loaded(state: FeedState, page: PostListResponse) -> FeedState:
    """Replace the list with the first page."""
    return replace(
        state,
        status=FeedStatus.LOADED,
        posts=tuple(page.data),
        has_more=page.has_more,
        offset=len(page.data),
        error=None,
    )


def load_failed(state: FeedState, message: str) -> FeedState:
    """Enter the error state; posts already shown are kept."""
    return replace(state, status=FeedStatus.ERROR, error=message)


def begin_load_more(state: FeedState) -> FeedState:
    return replace(state, status=FeedStatus.LOADING_MORE)


def page_appended(state: FeedState, page: PostListResponse) -> FeedState:
    """Append a follow-up page and advance the offset by its length."""
    return replace(
        state,
        status=FeedStatus.LOADED,
        posts=state.posts + tuple(page.data),
        has_more=page.has_more,
        offset=state.offset + len(page.data),
        error=None,
    )


# Local patches


def toggle_post_like(post: PostWithUser, liked: bool) -> PostWithUser:
    """Set the viewer's like flag and move the count with it."""
    if post.is_liked == liked:
        return post
    delta = 1 if liked else -1
    return post.model_copy(
        update={"is_liked": liked, "likes_count": max(0, post.likes_count + delta)}
    )


def like_toggled(state: FeedState, post_id: str, liked: bool) -> FeedState:
    post = state.find(post_id)
    if post is None:
        return state
    return _replace_post(state, post_id, toggle_post_like(post, liked))


def likes_count_changed(
    state: FeedState,
    post_id: str,
    likes_count: int,
    liked: bool | None = None,
) -> FeedState:
    """Overwrite a post's like count with a value reported by the modal."""
    post = state.find(post_id)
    if post is None:
        return state
    update: dict[str, object] = {"likes_count": max(0, likes_count)}
    if liked is not None:
        update["is_liked"] = liked
    return _replace_post(state, post_id, post.model_copy(update=update))


def comments_count_changed(state: FeedState, post_id: str, comments_count: int) -> FeedState:
    post = state.find(post_id)
    if post is None:
        return state
    return _replace_post(
        state,
        post_id,
        post.model_copy(update={"comments_count": max(0, comments_count)}),
    )


def post_removed(state: FeedState, post_id: str) -> FeedState:
    """Drop a deleted post.

    The offset shrinks too, otherwise the next page would skip the post that
    slid into the freed position on the server.
    """
    if state.find(post_id) is None:
        return state
    return replace(
        state,
        posts=tuple(post for post in state.posts if post.id != post_id),
        offset=max(0, state.offset - 1),
    )


# Modal


def modal_loaded(
    state: ModalState,
    post: PostWithUser,
    comments: CommentListResponse | None,
) -> ModalState:
    return replace(
        state,
        post=post,
        comments=tuple(comments.comments) if comments is not None else (),
        loading=False,
        error=None,
    )


def comment_added(state: ModalState, comment: CommentWithUser) -> ModalState:
    post = state.post
    if post is not None:
        post = post.model_copy(update={"comments_count": post.comments_count + 1})
    return replace(state, post=post, comments=state.comments + (comment,))


def comment_removed(state: ModalState, comment_id: str) -> ModalState:
    remaining = tuple(comment for comment in state.comments if comment.id != comment_id)
    if len(remaining) == len(state.comments):
        return state
    post = state.post
    if post is not None:
        post = post.model_copy(update={"comments_count": max(0, post.comments_count - 1)})
    return replace(state, post=post, comments=remaining)


# Profile


def follow_toggled(state: ProfileState, following: bool) -> ProfileState:
    """Set the viewer's follow flag and move the follower count with it."""
    profile = state.profile
    if profile is None or profile.is_following == following:
        return state
    delta = 1 if following else -1
    profile = profile.model_copy(
        update={
            "is_following": following,
            "followers_count": max(0, profile.followers_count + delta),
        }
    )
    return replace(state, profile=profile)
