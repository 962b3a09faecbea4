"""Follow-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FollowCreate(BaseModel):
    """Body for following or unfollowing a user."""

    following_id: str = Field(..., min_length=1, description="User to (un)follow")


class FollowRead(BaseModel):
    """A stored follow row."""

    id: str
    follower_id: str
    following_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FollowResponse(BaseModel):
    """Result of following a user."""

    success: bool = True
    follow: FollowRead
