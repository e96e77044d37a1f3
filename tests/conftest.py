#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for RandomImage tests.
Uses an in-memory SQLite database so no external services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from randomimage.core.config import get_settings
from randomimage.core.database import Base, get_db, make_engine
from randomimage.main import create_app
from randomimage.models import Attachment, Namespace, Page, PageVersion
from randomimage.services.titles import slugify


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def settings_env(tmp_path, monkeypatch):
    """Isolated settings per test: attachments under tmp_path, fresh cache."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("ATTACHMENT_ROOT", str(tmp_path / "attachments"))
    monkeypatch.setenv("BASE_URL", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = make_engine(TEST_DB_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker: both client and db_session use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup and service-level tests."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, db_session_factory):
    """HTTP test client wired to an isolated in-memory DB."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def add_namespace(session: AsyncSession, name: str, default_format: str = "wikitext") -> Namespace:
    ns = Namespace(name=name, description="", default_format=default_format)
    session.add(ns)
    await session.flush()
    return ns


async def add_page(
    session: AsyncSession,
    ns: Namespace,
    title: str,
    content: str = "",
    random_key: float = 0.5,
    is_redirect: bool = False,
) -> Page:
    page = Page(
        namespace_id=ns.id,
        title=title,
        slug=slugify(title),
        random=random_key,
        is_redirect=is_redirect,
    )
    session.add(page)
    await session.flush()
    session.add(PageVersion(page_id=page.id, version=1, content=content, format="wikitext"))
    await session.flush()
    return page


async def add_file(
    session: AsyncSession,
    page: Page,
    filename: str | None = None,
    content_type: str = "image/png",
) -> Attachment:
    att = Attachment(
        page_id=page.id,
        filename=filename or page.title,
        content_type=content_type,
        size_bytes=4,
        storage_path=f"File/{page.slug}/{filename or page.title}",
    )
    session.add(att)
    await session.flush()
    return att


async def add_image(
    session: AsyncSession,
    ns: Namespace,
    title: str,
    description: str = "",
    random_key: float = 0.5,
    content_type: str = "image/png",
) -> Page:
    """A file page with a backing file of the same name."""
    page = await add_page(session, ns, title, description, random_key)
    await add_file(session, page, content_type=content_type)
    return page


# -----------------------------------------------------------------------------
