"""Map verified auth-provider subjects onto internal user rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from instafeed.core.settings import settings
from instafeed.models import User

logger = logging.getLogger(__name__)

__all__ = [
    "Identity",
    "InvalidTokenError",
    "decode_identity",
    "get_user_by_subject",
    "resolve_user",
]


class InvalidTokenError(ValueError):
    """Raised when a bearer token cannot be verified."""


@dataclass(frozen=True)
class Identity:
    """Verified identity extracted from an auth-provider token."""

    subject: str
    name: str


def _display_name(claims: dict[str, Any], subject: str) -> str:
    for key in ("name", "username"):
        value = claims.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return subject


def decode_identity(token: str) -> Identity:
    """Verify ``token`` and return the identity it carries.

    Raises:
        InvalidTokenError: If the signature, audience, issuer or expiry check
            fails, or the token has no ``sub`` claim.
    """
    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_jwt_issuer,
            options=options,
        )
    except JWTError as err:
        raise InvalidTokenError(str(err)) from err

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise InvalidTokenError("Token has no subject")
    return Identity(subject=subject, name=_display_name(claims, subject))


def get_user_by_subject(db: Session, subject: str) -> User | None:
    """Return the user linked to an external subject id, if any."""
    return db.query(User).filter(User.clerk_id == subject).first()


def resolve_user(db: Session, identity: Identity, *, refresh_name: bool = False) -> User:
    """Return the internal user for ``identity``, creating it on first sight.

    Args:
        db: Database session.
        identity: Verified identity from the request token.
        refresh_name: Overwrite the stored display name with the token's.

    Returns:
        The persisted user row.
    """
    user = get_user_by_subject(db, identity.subject)
    if user is not None:
        if refresh_name and user.name != identity.name:
            user.name = identity.name
            db.commit()
            db.refresh(user)
        return user

    user = User(clerk_id=identity.subject, name=identity.name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request inserted the same subject first; use its row.
        db.rollback()
        existing = get_user_by_subject(db, identity.subject)
        if existing is None:
            raise
        return existing

    db.refresh(user)
    logger.info("Synced new user %s for subject %s", user.id, identity.subject)
    return user
