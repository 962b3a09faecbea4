"""Comment endpoints: list, create, delete."""

import logging

from fastapi import APIRouter, Query, status
from sqlalchemy import func, select

from instafeed.core.errors import ForbiddenError, NotFoundError, ValidationError
from instafeed.core.settings import settings
from instafeed.models import Comment, Post, User
from instafeed.schemas.comment import (
    CommentCreate,
    CommentCreateResponse,
    CommentDelete,
    CommentListResponse,
    CommentWithUser,
)
from instafeed.schemas.common import MessageResponse
from instafeed.schemas.user import UserPublic
from instafeed.services.post_service import clamp_page

from ..dependencies import CurrentUserDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])

UNKNOWN_AUTHOR_NAME = "Unknown"


def _with_author(comment: Comment, author: User | None) -> CommentWithUser:
    if author is None:
        user = UserPublic(
            id=comment.user_id,
            clerk_id="",
            name=UNKNOWN_AUTHOR_NAME,
            created_at=comment.created_at,
        )
    else:
        user = UserPublic.model_validate(author)
    return CommentWithUser(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user=user,
    )


@router.get("", response_model=CommentListResponse)
async def list_comments(
    db: SessionDep,
    post_id: str = Query(..., description="Post whose comments to list"),
    limit: int | None = Query(None, description="Comments per page (default 50)"),
    offset: int | None = Query(None, description="Number of comments to skip"),
) -> CommentListResponse:
    """List a post's comments oldest first, with the post's total comment count."""
    limit, offset = clamp_page(
        limit,
        offset,
        default=settings.comments_default_limit,
        maximum=settings.comments_max_limit,
    )
    rows = db.execute(
        select(Comment, User)
        .outerjoin(User, User.id == Comment.user_id)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset(offset)
        .limit(limit)
    ).all()
    total = db.scalar(
        select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    ) or 0

    return CommentListResponse(
        comments=[_with_author(comment, author) for comment, author in rows],
        total=int(total),
    )


@router.post("", response_model=CommentCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentCreateResponse:
    """Add a comment to a post and return it joined to its author.

    Raises:
        ValidationError: If the content is empty after trimming
        NotFoundError: If the post does not exist
    """
    content = comment_data.content.strip()
    if not content:
        raise ValidationError("content is required and cannot be empty")

    if db.query(Post.id).filter(Post.id == comment_data.post_id).first() is None:
        raise NotFoundError("Post not found")

    comment = Comment(post_id=comment_data.post_id, user_id=current_user.id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return CommentCreateResponse(comment=_with_author(comment, current_user))


@router.delete("", response_model=MessageResponse)
async def delete_comment(
    comment_data: CommentDelete,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Delete a comment written by the caller.

    Owning the post does not grant the right to delete other people's comments.

    Raises:
        NotFoundError: If the comment does not exist
        ForbiddenError: If the caller did not write the comment
    """
    comment = db.query(Comment).filter(Comment.id == comment_data.comment_id).first()
    if comment is None:
        raise NotFoundError("Comment not found")

    if comment.user_id != current_user.id:
        logger.info(
            "User %s tried to delete comment %s by %s",
            current_user.id,
            comment.id,
            comment.user_id,
        )
        raise ForbiddenError("Forbidden: You can only delete your own comments")

    db.delete(comment)
    db.commit()
    return MessageResponse(message="Comment deleted")
