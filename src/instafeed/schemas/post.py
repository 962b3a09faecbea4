"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class PostResponse(BaseModel):
    """A stored post row."""

    id: str
    user_id: str
    image_url: str
    caption: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostWithUser(PostResponse):
    """Post annotated with counts, its owner, and the viewer's like state."""

    likes_count: int = 0
    comments_count: int = 0
    user: UserPublic
    is_liked: bool = False


class PostListResponse(BaseModel):
    """One page of the feed."""

    data: list[PostWithUser]
    has_more: bool
    next_offset: int | None = Field(
        None,
        description="Offset for the next page, present only when has_more is true",
    )


class PostDetailResponse(BaseModel):
    """Envelope for a single post."""

    data: PostWithUser | None
    error: str | None = None


class PostCreateResponse(BaseModel):
    """Result of creating a post."""

    success: bool = True
    post: PostResponse
