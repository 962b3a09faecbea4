"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class CommentCreate(BaseModel):
    """Body for creating a comment; emptiness is checked by the handler."""

    post_id: str = Field(..., min_length=1)
    content: str


class CommentDelete(BaseModel):
    """Body for deleting a comment."""

    comment_id: str = Field(..., min_length=1)


class CommentWithUser(BaseModel):
    """Comment joined to its author."""

    id: str
    post_id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    user: UserPublic

    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(BaseModel):
    """One page of comments plus the post's total comment count."""

    comments: list[CommentWithUser]
    total: int


class CommentCreateResponse(BaseModel):
    """Result of creating a comment."""

    success: bool = True
    comment: CommentWithUser
