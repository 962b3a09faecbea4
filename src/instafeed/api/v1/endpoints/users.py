"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from instafeed.core.errors import NotFoundError, UnauthorizedError
from instafeed.schemas.user import ProfileResponse, UserPublic
from instafeed.services.identity import resolve_user
from instafeed.services.user_service import find_user, load_profile

from ..dependencies import IdentityDep, OptionalUserDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])

ME = "me"


@router.post("/sync", response_model=UserPublic)
async def sync_user(identity: IdentityDep, db: SessionDep) -> UserPublic:
    """Create the caller's user row if needed and refresh its display name."""
    user = resolve_user(db, identity, refresh_name=True)
    return UserPublic.model_validate(user)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    db: SessionDep,
    viewer: OptionalUserDep,
) -> ProfileResponse:
    """Return a profile with post/follower counts and the viewer's follow state.

    ``user_id`` may be an internal id, an auth-provider subject id, or ``"me"``.

    Raises:
        UnauthorizedError: ``"me"`` requested without credentials
        NotFoundError: Unknown user
    """
    if user_id == ME:
        if viewer is None:
            raise UnauthorizedError(data=None)
        user = viewer
    else:
        user = find_user(db, user_id)
        if user is None:
            raise NotFoundError("User not found", data=None)

    return ProfileResponse(data=load_profile(db, user, viewer))
