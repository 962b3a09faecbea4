"""Like-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LikeCreate(BaseModel):
    """Body for adding or removing a like."""

    post_id: str = Field(..., min_length=1, description="Target post id")


class LikeRead(BaseModel):
    """A stored like row."""

    id: str
    post_id: str
    user_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LikeResponse(BaseModel):
    """Result of adding a like."""

    success: bool = True
    like: LikeRead
