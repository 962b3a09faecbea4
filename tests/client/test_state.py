# tests/client/test_state.py
"""Tests for the pure client state reducers."""

from datetime import datetime, timezone

from instafeed.client.state import (
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
    page_appended,
    post_removed,
)
from instafeed.schemas.comment import CommentWithUser
from instafeed.schemas.post import PostListResponse, PostWithUser
from instafeed.schemas.user import Profile, UserPublic

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)
AUTHOR = UserPublic(id="u1", clerk_id="user_1", name="ann", created_at=NOW)


def _post(post_id: str, *, likes: int = 0, comments: int = 0, liked: bool = False) -> PostWithUser:
    return PostWithUser(
        id=post_id,
        user_id=AUTHOR.id,
        image_url=f"https://cdn.test/{post_id}.jpg",
        caption=None,
        created_at=NOW,
        updated_at=NOW,
        likes_count=likes,
        comments_count=comments,
        user=AUTHOR,
        is_liked=liked,
    )


def _comment(comment_id: str) -> CommentWithUser:
    return CommentWithUser(
        id=comment_id,
        post_id="p1",
        user_id=AUTHOR.id,
        content="hi",
        created_at=NOW,
        updated_at=NOW,
        user=AUTHOR,
    )


def _page(*posts: PostWithUser, has_more: bool) -> PostListResponse:
    return PostListResponse(data=list(posts), has_more=has_more, next_offset=None)


def _loaded(*posts: PostWithUser) -> FeedState:
    return initial_loaded(FeedState(), _page(*posts, has_more=True))


def test_initial_load_lifecycle() -> None:
    state = begin_initial_load(FeedState(error="old"))
    assert state.status is FeedStatus.LOADING_INITIAL
    assert state.error is None

    state = initial_loaded(state, _page(_post("p1"), _post("p2"), has_more=False))
    assert state.status is FeedStatus.LOADED
    assert state.post_ids == ["p1", "p2"]
    assert state.offset == 2
    assert state.has_more is False


def test_load_failed_keeps_posts() -> None:
    state = load_failed(_loaded(_post("p1")), "boom")
    assert state.status is FeedStatus.ERROR
    assert state.error == "boom"
    assert state.post_ids == ["p1"]


def test_page_appended_advances_by_received_count() -> None:
    state = begin_load_more(_loaded(_post("p1"), _post("p2")))
    assert state.status is FeedStatus.LOADING_MORE

    state = page_appended(state, _page(_post("p3"), has_more=False))
    assert state.post_ids == ["p1", "p2", "p3"]
    assert state.offset == 3
    assert state.status is FeedStatus.LOADED
    assert state.has_more is False


def test_like_toggled_moves_count_without_mutating_input() -> None:
    original = _loaded(_post("p1", likes=4))
    liked = like_toggled(original, "p1", True)

    assert liked.find("p1").is_liked is True
    assert liked.find("p1").likes_count == 5
    assert original.find("p1").likes_count == 4

    unliked = like_toggled(liked, "p1", False)
    assert unliked.find("p1").likes_count == 4
    assert like_toggled(unliked, "p1", False) == unliked


def test_like_toggled_ignores_unknown_post() -> None:
    state = _loaded(_post("p1"))
    assert like_toggled(state, "zzz", True) is state


def test_count_changes_from_modal() -> None:
    state = _loaded(_post("p1"), _post("p2"))
    state = likes_count_changed(state, "p1", 7, liked=True)
    state = comments_count_changed(state, "p2", 3)

    assert state.find("p1").likes_count == 7
    assert state.find("p1").is_liked is True
    assert state.find("p2").comments_count == 3


def test_post_removed_shrinks_offset() -> None:
    state = post_removed(_loaded(_post("p1"), _post("p2")), "p1")
    assert state.post_ids == ["p2"]
    assert state.offset == 1
    assert post_removed(state, "missing") is state


def test_comment_added_and_removed_track_count() -> None:
    state = ModalState(post_id="p1", post=_post("p1", comments=1), comments=(_comment("c1"),))

    added = comment_added(state, _comment("c2"))
    assert [comment.id for comment in added.comments] == ["c1", "c2"]
    assert added.post.comments_count == 2
    assert state.post.comments_count == 1

    removed = comment_removed(added, "c1")
    assert [comment.id for comment in removed.comments] == ["c2"]
    assert removed.post.comments_count == 1
    assert comment_removed(removed, "missing") is removed


def test_follow_toggled() -> None:
    profile = Profile(
        id="u2",
        clerk_id="user_2",
        name="bob",
        created_at=NOW,
        followers_count=3,
        is_following=False,
    )
    state = follow_toggled(ProfileState(profile=profile), True)
    assert state.profile.is_following is True
    assert state.profile.followers_count == 4

    state = follow_toggled(state, False)
    assert state.profile.followers_count == 3
    assert follow_toggled(ProfileState(), True) == ProfileState()
