"""SQLAlchemy models for the instafeed application."""

from .comment import Comment
from .follow import Follow
from .like import Like
from .post import Post
from .user import User
from .views import post_stats, user_stats

__all__ = [
    "Comment",
    "Follow",
    "Like",
    "Post",
    "User",
    "post_stats",
    "user_stats",
]
