"""
Database session management.

:func:`build_engine` and :func:`build_sessionmaker` construct the persistence
handle explicitly; the module-level ``engine`` / ``AsyncSessionLocal`` are the
defaults built from ``settings``.  Services never import them: they receive a
session (via repositories) from FastAPI's ``Depends(get_db)`` or from the CLI.
"""

from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from backoffice.core.config import settings


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # aiosqlite wraps a sync connection; the "connect" event fires on the sync engine.
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create an async engine for ``url`` (defaults to ``settings.DATABASE_URL``).

    In-memory SQLite uses a ``StaticPool`` so every connection shares the same
    database; file-backed SQLite and PostgreSQL use regular pools.
    """
    url = url or settings.DATABASE_URL
    echo = settings.DEBUG if echo is None else echo

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.rstrip("/").endswith("sqlite+aiosqlite:") or ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=echo, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: attribute access after commit must not trigger
    # a lazy load, which async sessions cannot perform implicitly.
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields one async session per request.

    The session is closed when the request finishes; an uncommitted
    transaction is rolled back by the close.
    """
    async with AsyncSessionLocal() as session:
        yield session
