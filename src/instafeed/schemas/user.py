"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserPublic(BaseModel):
    """User fields safe to embed in posts and comments."""

    id: str
    clerk_id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Profile(UserPublic):
    """User profile with denormalized counts and the viewer's relation to it."""

    posts_count: int = 0
    followers_count: int = 0
    following_count: int = 0
    is_own_profile: bool = False
    is_following: bool | None = Field(
        None,
        description="Whether the viewer follows this user; null for anonymous viewers",
    )


class ProfileResponse(BaseModel):
    """Envelope for a single profile."""

    data: Profile | None
    error: str | None = None
