"""Profile lookups backed by the ``user_stats`` view."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from instafeed.models import Follow, User, user_stats
from instafeed.schemas.user import Profile

__all__ = [
    "find_user",
    "get_user",
    "is_following",
    "load_profile",
]


def get_user(db: Session, user_id: str) -> User | None:
    """Return a single user by primary key."""
    return db.query(User).filter(User.id == user_id).first()


def find_user(db: Session, identifier: str) -> User | None:
    """Look a user up by internal id first, then by external subject id."""
    user = get_user(db, identifier)
    if user is None:
        user = db.query(User).filter(User.clerk_id == identifier).first()
    return user


def is_following(db: Session, follower_id: str, following_id: str) -> bool:
    """Return True when ``follower_id`` follows ``following_id``."""
    return (
        db.query(Follow.id)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
        is not None
    )


def load_profile(db: Session, user: User, viewer: User | None) -> Profile:
    """Build the profile of ``user`` as seen by ``viewer``."""
    stats = db.execute(
        select(user_stats).where(user_stats.c.user_id == user.id)
    ).mappings().first()

    own_profile = viewer is not None and viewer.id == user.id
    following: bool | None = None
    if viewer is not None:
        following = False if own_profile else is_following(db, viewer.id, user.id)

    return Profile(
        id=user.id,
        clerk_id=user.clerk_id,
        name=user.name,
        created_at=user.created_at,
        posts_count=int(stats["posts_count"] or 0) if stats else 0,
        followers_count=int(stats["followers_count"] or 0) if stats else 0,
        following_count=int(stats["following_count"] or 0) if stats else 0,
        is_own_profile=own_profile,
        is_following=following,
    )
