"""Like-related endpoints for the instafeed API."""

import logging

from fastapi import APIRouter, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from instafeed.core.errors import ConflictError, NotFoundError
from instafeed.models import Like, Post
from instafeed.schemas.common import MessageResponse
from instafeed.schemas.like import LikeCreate, LikeRead, LikeResponse

from ..dependencies import CurrentUserDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/likes", tags=["likes"])


def _get_post_or_404(db: Session, post_id: str) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


@router.post("", response_model=LikeResponse, status_code=status.HTTP_201_CREATED)
async def add_like(
    like_data: LikeCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> LikeResponse:
    """Like a post. A second like by the same user is rejected with 409."""
    _get_post_or_404(db, like_data.post_id)

    like = Like(post_id=like_data.post_id, user_id=current_user.id)
    db.add(like)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("User %s already liked post %s", current_user.id, like_data.post_id)
        raise ConflictError("Already liked") from exc

    db.refresh(like)
    return LikeResponse(like=LikeRead.model_validate(like))


@router.delete("", response_model=MessageResponse)
async def remove_like(
    like_data: LikeCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Remove the caller's like; removing a like that does not exist succeeds."""
    db.query(Like).filter(
        Like.post_id == like_data.post_id,
        Like.user_id == current_user.id,
    ).delete(synchronize_session=False)
    db.commit()
    return MessageResponse(message="Like removed")
