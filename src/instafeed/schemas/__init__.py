"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentDelete, CommentListResponse, CommentWithUser
from .follow import FollowCreate, FollowResponse
from .like import LikeCreate, LikeResponse
from .post import PostListResponse, PostResponse, PostWithUser
from .user import Profile, ProfileResponse, UserPublic

__all__ = [
    "CommentCreate", "CommentDelete", "CommentListResponse", "CommentWithUser",
    "FollowCreate", "FollowResponse",
    "LikeCreate", "LikeResponse",
    "PostListResponse", "PostResponse", "PostWithUser",
    "Profile", "ProfileResponse", "UserPublic",
]
