# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any
from urllib.parse import quote

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("STORAGE_BACKEND", "local")

from instafeed.api.v1.dependencies import get_storage_dep
from instafeed.core.settings import settings
from instafeed.db.session import create_tables, enable_sqlite_foreign_keys
from instafeed.db.session import get_db as app_get_session
from instafeed.main import app as fastapi_app
from instafeed.models import Comment, Follow, Like, Post, User
from instafeed.services.storage import StorageError

TEST_DB_URL = "sqlite://"
FEED_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)

_POST_ORDER_COUNTER = count(1)


class FakeStorage:
    """In-memory object store with switchable failures."""

    base_url = "https://cdn.test/posts"

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_deletes = False

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise StorageError("upload refused")
        if path in self.objects:
            raise StorageError(f"Object already exists: {path}")
        self.objects[path] = (data, content_type)

    async def delete(self, path: str) -> None:
        if self.fail_deletes:
            raise StorageError("delete refused")
        self.objects.pop(path, None)
        self.deleted.append(path)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path)}"

    def path_from_url(self, url: str) -> str | None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    create_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    storage: FakeStorage,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_storage_dep] = lambda: storage
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_storage_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def make_token(subject: str, name: str | None = None, **claims: Any) -> str:
    payload: dict[str, Any] = {"sub": subject, **claims}
    if name is not None:
        payload["name"] = name
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def auth_headers(subject: str, name: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(subject, name)}"}


def _create_user(db: Session, subject: str, name: str) -> User:
    user = User(clerk_id=subject, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    return _create_user(db_session, "user_alice", "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    return _create_user(db_session, "user_bob", "bob")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    return auth_headers(test_user.clerk_id, test_user.name)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    return auth_headers(other_user.clerk_id, other_user.name)


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Insert posts with strictly increasing ``created_at`` values."""

    def _make_post(owner: User, caption: str | None = None, **overrides: Any) -> Post:
        order = next(_POST_ORDER_COUNTER)
        created_at = FEED_EPOCH + timedelta(seconds=order)
        post = Post(
            user_id=owner.id,
            image_url=f"{FakeStorage.base_url}/{owner.clerk_id}/{order}.jpg",
            caption=caption if caption is not None else f"post {order}",
            created_at=created_at,
            updated_at=created_at,
            **overrides,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post], test_user: User) -> Post:
    return make_post(test_user, "Hello world")


@pytest.fixture()
def add_like(db_session: Session) -> Callable[[Post, User], Like]:
    def _add_like(post: Post, user: User) -> Like:
        like = Like(post_id=post.id, user_id=user.id)
        db_session.add(like)
        db_session.commit()
        return like

    return _add_like


@pytest.fixture()
def add_comment(db_session: Session) -> Callable[..., Comment]:
    def _add_comment(post: Post, user: User, content: str = "nice", **overrides: Any) -> Comment:
        comment = Comment(post_id=post.id, user_id=user.id, content=content, **overrides)
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _add_comment


@pytest.fixture()
def add_follow(db_session: Session) -> Callable[[User, User], Follow]:
    def _add_follow(follower: User, following: User) -> Follow:
        follow = Follow(follower_id=follower.id, following_id=following.id)
        db_session.add(follow)
        db_session.commit()
        return follow

    return _add_follow


@pytest.fixture()
def headers_for() -> Callable[..., dict[str, str]]:
    return auth_headers
