"""SQLAlchemy model for user identities synced from the auth provider."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instafeed.db.session import Base
from instafeed.db.time import utcnow

if TYPE_CHECKING:
    from .post import Post


def new_id() -> str:
    """Return a fresh UUID4 primary key as text."""
    return str(uuid.uuid4())


class User(Base):
    """Internal user row keyed by a UUID, linked to the external subject id."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Subject identifier issued by the auth provider.
    clerk_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    posts: Mapped[list[Post]] = relationship(
        "Post",
        back_populates="user",
        cascade="all, delete-orphan",
    )
