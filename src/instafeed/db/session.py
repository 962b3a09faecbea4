"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from instafeed.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import instafeed.models  # noqa: E402,F401
from instafeed.models.views import VIEW_DEFINITIONS  # noqa: E402


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for every SQLite connection of ``engine``.

    SQLite ignores ``ON DELETE CASCADE`` unless the pragma is set per connection.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.effective_database_url,
    pool_pre_ping=True,
    echo=settings.sql_debug,
)
enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_views(bind: Engine) -> None:
    """(Re)create the read-only aggregation views."""
    with bind.begin() as conn:
        for name, ddl in VIEW_DEFINITIONS.items():
            conn.exec_driver_sql(f"DROP VIEW IF EXISTS {name}")
            conn.exec_driver_sql(f"CREATE VIEW {name} AS {ddl}")


def drop_views(bind: Engine) -> None:
    """Drop the aggregation views."""
    with bind.begin() as conn:
        for name in VIEW_DEFINITIONS:
            conn.exec_driver_sql(f"DROP VIEW IF EXISTS {name}")


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables and the views built on them."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    create_views(bind)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    bind = bind or engine
    drop_views(bind)
    Base.metadata.drop_all(bind=bind)
