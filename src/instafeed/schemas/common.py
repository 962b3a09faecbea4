"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Acknowledgement returned by delete endpoints."""

    success: bool = True
    message: str = Field(..., description="Human readable outcome")
