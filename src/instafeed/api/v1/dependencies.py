"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from instafeed.core.errors import UnauthorizedError
from instafeed.db.session import get_db
from instafeed.models import User
from instafeed.services.identity import Identity, InvalidTokenError, decode_identity, resolve_user
from instafeed.services.storage import ObjectStorage, get_storage

# Missing credentials are reported by our own 401, not FastAPI's 403.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_storage_dep() -> ObjectStorage:
    """Return the configured object storage backend."""
    return get_storage()


StorageDep = Annotated[ObjectStorage, Depends(get_storage_dep)]


def get_identity(credentials: CredentialsDep) -> Identity:
    """Return the verified identity of the caller.

    Raises:
        UnauthorizedError: If no bearer token is present or it fails verification
    """
    if credentials is None:
        raise UnauthorizedError()
    try:
        return decode_identity(credentials.credentials)
    except InvalidTokenError as err:
        raise UnauthorizedError() from err


def get_optional_identity(credentials: CredentialsDep) -> Identity | None:
    """Return the caller's identity, or None when the request is anonymous.

    A token that is present but invalid is treated as anonymous.
    """
    if credentials is None:
        return None
    try:
        return decode_identity(credentials.credentials)
    except InvalidTokenError:
        return None


def get_current_user(
    identity: Annotated[Identity, Depends(get_identity)],
    db: SessionDep,
) -> User:
    """Get the internal user for the authenticated caller, creating it on first sight."""
    return resolve_user(db, identity)


def get_optional_user(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
    db: SessionDep,
) -> User | None:
    """Get the internal user for the caller if authenticated."""
    if identity is None:
        return None
    return resolve_user(db, identity)


# Type aliases for identity dependencies
IdentityDep = Annotated[Identity, Depends(get_identity)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
