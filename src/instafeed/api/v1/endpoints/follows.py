"""Follow endpoints."""

import logging

from fastapi import APIRouter, status
from sqlalchemy.exc import IntegrityError

from instafeed.core.errors import NotFoundError, ValidationError
from instafeed.models import Follow
from instafeed.schemas.common import MessageResponse
from instafeed.schemas.follow import FollowCreate, FollowRead, FollowResponse
from instafeed.services.user_service import get_user, is_following

from ..dependencies import CurrentUserDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/follows", tags=["follows"])

ALREADY_FOLLOWING = "Already following this user"


@router.post("", response_model=FollowResponse, status_code=status.HTTP_201_CREATED)
async def follow_user(
    follow_data: FollowCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> FollowResponse:
    """Follow another user.

    Duplicates are checked before the insert and again through the unique
    constraint, which catches two concurrent follows of the same pair.

    Raises:
        ValidationError: Self-follow or duplicate follow
        NotFoundError: If the target user does not exist
    """
    target_id = follow_data.following_id
    if target_id == current_user.id:
        raise ValidationError("Cannot follow yourself")

    if get_user(db, target_id) is None:
        raise NotFoundError("Target user not found")

    if is_following(db, current_user.id, target_id):
        raise ValidationError(ALREADY_FOLLOWING)

    follow = Follow(follower_id=current_user.id, following_id=target_id)
    db.add(follow)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Concurrent follow of %s by %s", target_id, current_user.id)
        raise ValidationError(ALREADY_FOLLOWING) from exc

    db.refresh(follow)
    return FollowResponse(follow=FollowRead.model_validate(follow))


@router.delete("", response_model=MessageResponse)
async def unfollow_user(
    follow_data: FollowCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Stop following a user.

    Raises:
        NotFoundError: If the caller does not follow the target
    """
    follow = db.query(Follow).filter(
        Follow.follower_id == current_user.id,
        Follow.following_id == follow_data.following_id,
    ).first()
    if follow is None:
        raise NotFoundError("Follow relationship not found")

    db.delete(follow)
    db.commit()
    return MessageResponse(message="Unfollowed successfully")
