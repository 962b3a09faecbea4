"""Post-related endpoints for the instafeed API."""

import logging

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError

from instafeed.core.errors import ApiError, ForbiddenError, NotFoundError, ValidationError
from instafeed.core.settings import settings
from instafeed.models import Post
from instafeed.schemas.common import MessageResponse
from instafeed.schemas.post import (
    PostCreateResponse,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
)
from instafeed.services.post_service import clamp_page, get_post_with_user, list_feed
from instafeed.services.storage import StorageError, build_object_path, delete_quietly

from ..dependencies import CurrentUserDep, OptionalUserDep, SessionDep, StorageDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


def _too_large() -> ValidationError:
    return ValidationError(f"File size exceeds {settings.max_upload_megabytes}MB limit")


async def _read_image(image: UploadFile | None) -> tuple[bytes, str]:
    """Validate an uploaded image and return its bytes and content type.

    At most ``max_upload_bytes + 1`` bytes are read, so oversized uploads are
    rejected without buffering the whole file.
    """
    if image is None or not image.filename:
        raise ValidationError("Image is required")

    content_type = (image.content_type or "").lower()
    if content_type not in settings.allowed_image_types:
        raise ValidationError(
            "Invalid file type. Only JPEG, PNG, WebP and GIF images are allowed"
        )

    if image.size is not None and image.size > settings.max_upload_bytes:
        raise _too_large()
    data = await image.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise _too_large()
    if not data:
        raise ValidationError("Image is empty")
    return data, content_type


def _normalize_caption(caption: str | None) -> str | None:
    caption = (caption or "").strip()
    if len(caption) > settings.max_caption_length:
        raise ValidationError(
            f"Caption exceeds {settings.max_caption_length} characters"
        )
    return caption or None


@router.get("", response_model=PostListResponse)
async def list_posts(
    db: SessionDep,
    current_user: CurrentUserDep,
    limit: int | None = Query(None, description="Posts per page (default 10, max 50)"),
    offset: int | None = Query(None, description="Number of posts to skip"),
    user_id: str | None = Query(None, alias="userId", description="Only posts by this user"),
) -> PostListResponse:
    """List posts newest first, with counts and the viewer's like state.

    Args:
        db: Database session
        current_user: Authenticated viewer
        limit: Page size, capped at ``FEED_MAX_LIMIT``
        offset: Rows to skip
        user_id: Optional owner filter for profile grids

    Returns:
        The page plus ``has_more`` and ``next_offset`` hints
    """
    limit, offset = clamp_page(
        limit,
        offset,
        default=settings.feed_default_limit,
        maximum=settings.feed_max_limit,
    )
    page = list_feed(
        db,
        viewer_id=current_user.id,
        limit=limit,
        offset=offset,
        owner_id=user_id,
    )
    return PostListResponse(data=page.posts, has_more=page.has_more, next_offset=page.next_offset)


@router.post("", response_model=PostCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    db: SessionDep,
    current_user: CurrentUserDep,
    storage: StorageDep,
    image: UploadFile | None = File(None),
    caption: str | None = Form(None),
) -> PostCreateResponse:
    """Upload an image and create a post pointing at it.

    The upload, URL lookup and insert are not atomic. When the insert fails
    the uploaded object is deleted best-effort; a failed cleanup is only logged.

    Raises:
        ValidationError: Missing image, disallowed type, oversized file or caption
        ApiError: Storage or database failure
    """
    data, content_type = await _read_image(image)
    caption_text = _normalize_caption(caption)

    object_path = build_object_path(current_user.clerk_id, content_type)
    try:
        await storage.upload(object_path, data, content_type)
    except StorageError as exc:
        logger.error("Image upload failed for user %s: %s", current_user.id, exc)
        raise ApiError("Failed to upload image") from exc

    post = Post(
        user_id=current_user.id,
        image_url=storage.public_url(object_path),
        caption=caption_text,
    )
    db.add(post)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Post insert failed for user %s", current_user.id)
        await delete_quietly(storage, object_path)
        raise ApiError("Failed to create post") from exc

    db.refresh(post)
    logger.info("Created post %s for user %s", post.id, current_user.id)
    return PostCreateResponse(post=PostResponse.model_validate(post))


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(
    post_id: str,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> PostDetailResponse:
    """Get a specific post with owner info; the viewer need not be authenticated.

    Raises:
        NotFoundError: If the post does not exist
    """
    post = get_post_with_user(db, post_id, viewer.id if viewer else None)
    if post is None:
        raise NotFoundError("Post not found", data=None)
    return PostDetailResponse(data=post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> MessageResponse:
    """Delete a post owned by the caller, its image, and (by cascade) its likes and comments.

    Raises:
        NotFoundError: If the post does not exist
        ForbiddenError: If the caller is not the owner
    """
    post = db.query(Post).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")

    if post.user_id != current_user.id:
        raise ForbiddenError("Forbidden: You can only delete your own posts")

    object_path = storage.path_from_url(post.image_url)
    if object_path:
        await delete_quietly(storage, object_path)
    else:
        logger.warning("Post %s image URL is not managed by storage: %s", post.id, post.image_url)

    db.delete(post)
    db.commit()
    logger.info("Deleted post %s", post_id)
    return MessageResponse(message="Post deleted")
