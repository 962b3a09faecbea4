"""Business logic services for the instafeed application."""

from .identity import Identity, decode_identity, resolve_user
from .storage import LocalStorage, ObjectStorage, StorageError, SupabaseStorage, get_storage

__all__ = [
    "Identity",
    "LocalStorage",
    "ObjectStorage",
    "StorageError",
    "SupabaseStorage",
    "decode_identity",
    "get_storage",
    "resolve_user",
]
