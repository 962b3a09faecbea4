"""Read-path helpers for posts: feed pages, single posts, like flags."""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from instafeed.models import Like, User, post_stats
from instafeed.schemas.post import PostWithUser
from instafeed.schemas.user import UserPublic

__all__ = [
    "FeedPage",
    "clamp_page",
    "get_post_with_user",
    "liked_post_ids",
    "list_feed",
]


@dataclass(frozen=True)
class FeedPage:
    """A feed slice plus the pagination hints returned to the client."""

    posts: list[PostWithUser]
    has_more: bool
    next_offset: int | None


def clamp_page(limit: int | None, offset: int | None, *, default: int, maximum: int) -> tuple[int, int]:
    """Normalize raw ``limit``/``offset`` query values."""
    limit = default if limit is None else limit
    limit = max(1, min(limit, maximum))
    offset = max(0, offset or 0)
    return limit, offset


def _stats_query():
    return (
        select(post_stats, User)
        .join(User, User.id == post_stats.c.user_id)
    )


def _to_post(row: Row, liked: bool) -> PostWithUser:
    stats = row._mapping
    user: User = stats[User]
    return PostWithUser(
        id=stats["post_id"],
        user_id=stats["user_id"],
        image_url=stats["image_url"],
        caption=stats["caption"],
        created_at=stats["created_at"],
        updated_at=stats["updated_at"],
        likes_count=int(stats["likes_count"] or 0),
        comments_count=int(stats["comments_count"] or 0),
        user=UserPublic.model_validate(user),
        is_liked=liked,
    )


def liked_post_ids(db: Session, viewer_id: str | None, post_ids: Iterable[str]) -> set[str]:
    """Return the subset of ``post_ids`` the viewer has liked."""
    post_ids = list(post_ids)
    if viewer_id is None or not post_ids:
        return set()
    rows = db.execute(
        select(Like.post_id).where(Like.user_id == viewer_id, Like.post_id.in_(post_ids))
    )
    return {post_id for (post_id,) in rows}


def list_feed(
    db: Session,
    *,
    viewer_id: str | None,
    limit: int,
    offset: int,
    owner_id: str | None = None,
) -> FeedPage:
    """Return one page of posts, newest first.

    ``has_more`` is true whenever the page came back full, so a result set
    whose size is an exact multiple of ``limit`` costs one extra empty fetch.
    """
    stmt = _stats_query()
    if owner_id is not None:
        stmt = stmt.where(post_stats.c.user_id == owner_id)
    stmt = (
        stmt.order_by(post_stats.c.created_at.desc(), post_stats.c.post_id.desc())
        .offset(offset)
        .limit(limit)
    )
    rows: Sequence[Row] = db.execute(stmt).all()

    liked = liked_post_ids(db, viewer_id, (row._mapping["post_id"] for row in rows))
    posts = [_to_post(row, row._mapping["post_id"] in liked) for row in rows]

    has_more = len(posts) == limit
    return FeedPage(
        posts=posts,
        has_more=has_more,
        next_offset=offset + limit if has_more else None,
    )


def get_post_with_user(db: Session, post_id: str, viewer_id: str | None) -> PostWithUser | None:
    """Return a single post with counts and owner, or None if it does not exist."""
    row = db.execute(_stats_query().where(post_stats.c.post_id == post_id)).first()
    if row is None:
        return None
    liked = bool(liked_post_ids(db, viewer_id, [post_id]))
    return _to_post(row, liked)
