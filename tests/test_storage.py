# tests/test_storage.py
"""Tests for the object storage adapters."""

import asyncio
import json

import httpx
import pytest

from instafeed.services.storage import (
    LocalStorage,
    StorageError,
    SupabaseStorage,
    build_object_path,
    delete_quietly,
)


def test_build_object_path_uses_owner_folder_and_extension() -> None:
    path = build_object_path("user_1", "image/webp")
    folder, filename = path.split("/")
    assert folder == "user_1"
    assert filename.endswith(".webp")
    assert build_object_path("user_1", "image/webp") != path


class TestLocalStorage:
    @pytest.mark.asyncio
    async def test_upload_and_delete(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path, "/media")
        await storage.upload("user_1/a.jpg", b"data", "image/jpeg")
        assert (tmp_path / "user_1" / "a.jpg").read_bytes() == b"data"

        await storage.delete("user_1/a.jpg")
        assert not (tmp_path / "user_1" / "a.jpg").exists()

    @pytest.mark.asyncio
    async def test_upload_refuses_overwrite(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path, "/media")
        await storage.upload("user_1/a.jpg", b"one", "image/jpeg")
        with pytest.raises(StorageError):
            await storage.upload("user_1/a.jpg", b"two", "image/jpeg")
        assert (tmp_path / "user_1" / "a.jpg").read_bytes() == b"one"

    @pytest.mark.asyncio
    async def test_upload_refuses_path_escape(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path / "media", "/media")
        with pytest.raises(StorageError):
            await storage.upload("../outside.jpg", b"x", "image/jpeg")

    @pytest.mark.asyncio
    async def test_delete_missing_object_is_not_an_error(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path, "/media")
        await storage.delete("user_1/missing.jpg")

    def test_url_round_trip(self, tmp_path) -> None:
        storage = LocalStorage(tmp_path, "http://localhost:8000/media/")
        url = storage.public_url("user_1/a b.jpg")
        assert url == "http://localhost:8000/media/user_1/a%20b.jpg"
        assert storage.path_from_url(url) == "user_1/a b.jpg"
        assert storage.path_from_url("https://elsewhere.test/x.jpg") is None


class TestSupabaseStorage:
    @staticmethod
    def _storage(handler) -> SupabaseStorage:
        return SupabaseStorage(
            "https://project.supabase.test/",
            "service-key",
            "posts",
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_upload_posts_object(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "posts/user_1/a.jpg"})

        await self._storage(handler).upload("user_1/a.jpg", b"img", "image/jpeg")

        [request] = seen
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/posts/user_1/a.jpg"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["Content-Type"] == "image/jpeg"
        assert request.headers["x-upsert"] == "false"
        assert request.content == b"img"

    @pytest.mark.asyncio
    async def test_upload_rejection_raises(self) -> None:
        storage = self._storage(lambda request: httpx.Response(409, json={"error": "Duplicate"}))
        with pytest.raises(StorageError):
            await storage.upload("user_1/a.jpg", b"img", "image/jpeg")

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(StorageError):
            await self._storage(handler).upload("user_1/a.jpg", b"img", "image/jpeg")

    @pytest.mark.asyncio
    async def test_delete_sends_prefix(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await self._storage(handler).delete("user_1/a.jpg")

        [request] = seen
        assert request.method == "DELETE"
        assert request.url.path == "/storage/v1/object/posts"
        assert json.loads(request.content) == {"prefixes": ["user_1/a.jpg"]}

    def test_public_url_round_trip(self) -> None:
        storage = self._storage(lambda request: httpx.Response(200))
        url = storage.public_url("user_1/a.jpg")
        assert url == "https://project.supabase.test/storage/v1/object/public/posts/user_1/a.jpg"
        assert storage.path_from_url(url) == "user_1/a.jpg"
        assert storage.path_from_url("https://project.supabase.test/other/a.jpg") is None


@pytest.mark.asyncio
async def test_delete_quietly_swallows_storage_errors(caplog) -> None:
    class BrokenStorage:
        async def delete(self, path: str) -> None:
            raise StorageError("boom")

    assert await delete_quietly(BrokenStorage(), "user_1/a.jpg") is False
    assert "user_1/a.jpg" in caplog.text


@pytest.mark.asyncio
async def test_local_storage_runs_file_io_in_worker_thread(tmp_path, monkeypatch) -> None:
    offloaded: list[str] = []
    to_thread = asyncio.to_thread

    async def recording_to_thread(func, /, *args, **kwargs):
        offloaded.append(func.__name__)
        return await to_thread(func, *args, **kwargs)

    monkeypatch.setattr("instafeed.services.storage.asyncio.to_thread", recording_to_thread)
    storage = LocalStorage(tmp_path, "/media")

    await storage.upload("user_1/a.jpg", b"data", "image/jpeg")
    await storage.delete("user_1/a.jpg")

    assert offloaded == ["_write_new", "unlink"]
    assert not (tmp_path / "user_1" / "a.jpg").exists()
