#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Database layer.

One async engine per process, built lazily from ``DATABASE_URL``.  SQLite
connections run with ``PRAGMA foreign_keys=ON`` so deleting a page takes its
versions and attachments with it, as the schema declares; an in-memory SQLite
URL shares a single connection so every session sees the same tables.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .config import get_settings


# -----------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Declarative base for the wiki tables."""


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str | None = None) -> AsyncEngine:
    """Build an engine for *url* (default: the configured database)."""
    settings = get_settings()
    url = url or settings.database_url

    if not url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        kwargs["poolclass"] = StaticPool
    engine = create_async_engine(url, echo=settings.db_echo, **kwargs)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db(url: str | None = None) -> None:
    """(Re)build the engine and session factory.  Called from the app lifespan."""
    global _engine, _session_factory
    _engine = make_engine(url)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)


async def dispose_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = _session_factory = None


# -----------------------------------------------------------------------------
# Sessions
# -----------------------------------------------------------------------------

def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        init_db()
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all_tables() -> None:
    """CREATE TABLE IF NOT EXISTS for every model; no migrations are shipped."""
    get_session_factory()
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# -----------------------------------------------------------------------------
