"""Object storage adapters for post images.

Two backends share the :class:`ObjectStorage` interface:

- :class:`SupabaseStorage` talks to a Supabase Storage bucket over its REST
  API using ``httpx``.
- :class:`LocalStorage` writes files beneath a directory and serves them from
  a static mount; it is the development default.

Objects are keyed ``{owner_subject}/{generated_filename}``. Callers that
compensate for a failed write use :func:`delete_quietly`, which logs and
swallows storage errors.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote, urlsplit

import httpx

from instafeed.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_NOT_FOUND = 404

CONTENT_TYPE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class StorageError(RuntimeError):
    """Raised when the object store rejects or fails an operation."""


class ObjectStorage(Protocol):
    """Minimal interface the post handlers need from an object store."""

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store ``data`` under ``path``; never overwrite an existing object."""

    async def delete(self, path: str) -> None:
        """Remove the object at ``path``; missing objects are not an error."""

    def public_url(self, path: str) -> str:
        """Return the public URL of the object at ``path``."""

    def path_from_url(self, url: str) -> str | None:
        """Recover the object path from a URL produced by :meth:`public_url`."""


def build_object_path(owner_subject: str, content_type: str) -> str:
    """Return a fresh object path in the owner's folder."""
    extension = CONTENT_TYPE_EXTENSIONS.get(content_type, "bin")
    return f"{owner_subject}/{uuid.uuid4().hex}.{extension}"


class SupabaseStorage:
    """Supabase Storage REST client bound to one public bucket."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }
        self._timeout = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        url = f"/storage/v1/object/{self.bucket}/{quote(path)}"
        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    content=data,
                    headers={"Content-Type": content_type, "x-upsert": "false"},
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Upload of {path} failed: {exc}") from exc
        if response.status_code != HTTP_OK:
            raise StorageError(
                f"Upload of {path} rejected with {response.status_code}: {response.text}"
            )

    async def delete(self, path: str) -> None:
        try:
            async with self._client() as client:
                response = await client.request(
                    "DELETE",
                    f"/storage/v1/object/{self.bucket}",
                    json={"prefixes": [path]},
                )
        except httpx.HTTPError as exc:
            raise StorageError(f"Delete of {path} failed: {exc}") from exc
        if response.status_code not in (HTTP_OK, HTTP_NOT_FOUND):
            raise StorageError(
                f"Delete of {path} rejected with {response.status_code}: {response.text}"
            )

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    def path_from_url(self, url: str) -> str | None:
        marker = f"/storage/v1/object/public/{self.bucket}/"
        _, found, tail = urlsplit(url).path.partition(marker)
        if not found or not tail:
            return None
        return unquote(tail)


class LocalStorage:
    """Filesystem-backed store for development and single-node deployments."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    @staticmethod
    def _write_new(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        # "x" mode fails if another upload created the file first.
        with target.open("xb") as fh:
            fh.write(data)

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write_new, target, data)
        except FileExistsError as exc:
            raise StorageError(f"Object already exists: {path}") from exc
        except OSError as exc:
            raise StorageError(f"Upload of {path} failed: {exc}") from exc

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Delete of {path} failed: {exc}") from exc

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path)}"

    def path_from_url(self, url: str) -> str | None:
        prefix = urlsplit(self.base_url).path.rstrip("/") + "/"
        url_path = urlsplit(url).path
        if not url_path.startswith(prefix):
            return None
        return unquote(url_path[len(prefix):]) or None


async def delete_quietly(storage: ObjectStorage, path: str) -> bool:
    """Best-effort delete; logs and returns False instead of raising."""
    try:
        await storage.delete(path)
    except StorageError as exc:
        logger.warning("Could not delete stored object %s: %s", path, exc)
        return False
    return True


@lru_cache(maxsize=1)
def get_storage() -> ObjectStorage:
    """Return the storage backend selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise StorageError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        return SupabaseStorage(
            settings.supabase_url,
            settings.supabase_service_key,
            settings.storage_bucket,
            timeout_seconds=settings.storage_http_timeout_seconds,
        )
    return LocalStorage(settings.media_root, settings.media_base_url)
