#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page service
============
Versioned create / read / update for wiki pages, plus the title-keyed lookups
the parser extensions need (existence, current revision text, random pick).

Every save appends a new PageVersion row; nothing is overwritten.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.models import Attachment, Namespace, Page, PageVersion
from randomimage.schemas import PageCreate, PageUpdate
from .namespaces import get_namespace_by_name
from .renderer import parse_redirect
from .titles import Title, make_title_safe, normalize_title_text, slugify


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class RevisionAccessError(Exception):
    """The current revision of a page exists but its content could not be read."""


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

async def _get_page(db: AsyncSession, ns_id: str, slug: str) -> Page:
    result = await db.execute(
        select(Page).where(Page.namespace_id == ns_id, Page.slug == slug)
    )
    page = result.scalar_one_or_none()
    if not page:
        raise HTTPException(status_code=404, detail=f"Page '{slug}' not found")
    return page


async def _latest_version(db: AsyncSession, page_id: str) -> Optional[PageVersion]:
    result = await db.execute(
        select(PageVersion)
        .where(PageVersion.page_id == page_id)
        .order_by(PageVersion.version.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def _title_clause(title: Title):
    return and_(Namespace.name == title.namespace, Page.slug == slugify(title.text))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CRUD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def create_page(
    db: AsyncSession,
    namespace_name: str,
    data: PageCreate,
) -> tuple[Page, PageVersion]:
    ns = await get_namespace_by_name(db, namespace_name)
    title = normalize_title_text(data.title)
    slug = slugify(title)
    if not slug:
        raise HTTPException(status_code=422, detail=f"Invalid page title '{data.title}'")

    exists = await db.execute(
        select(Page).where(Page.namespace_id == ns.id, Page.slug == slug)
    )
    if exists.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Page '{title}' already exists in namespace '{namespace_name}'",
        )

    page = Page(
        namespace_id=ns.id,
        title=title,
        slug=slug,
        is_redirect=parse_redirect(data.content) is not None,
    )
    db.add(page)
    await db.flush()

    version = PageVersion(
        page_id=page.id,
        version=1,
        content=data.content,
        format=data.format or ns.default_format,
        comment=data.comment or "Initial version",
    )
    db.add(version)
    await db.flush()
    return page, version


# -----------------------------------------------------------------------------

async def get_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
    version: Optional[int] = None,
) -> tuple[Page, PageVersion]:
    """Return (page, version_row). Defaults to latest version."""
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    if version is not None:
        result = await db.execute(
            select(PageVersion)
            .where(PageVersion.page_id == page.id, PageVersion.version == version)
        )
        ver = result.scalar_one_or_none()
        if not ver:
            raise HTTPException(status_code=404, detail=f"Version {version} not found")
    else:
        ver = await _latest_version(db, page.id)
        if not ver:
            raise HTTPException(status_code=404, detail="Page has no content")

    return page, ver


# -----------------------------------------------------------------------------

async def update_page(
    db: AsyncSession,
    namespace_name: str,
    slug: str,
    data: PageUpdate,
) -> tuple[Page, PageVersion]:
    ns = await get_namespace_by_name(db, namespace_name)
    page = await _get_page(db, ns.id, slug)

    prev = await _latest_version(db, page.id)
    if prev:
        prev.rendered = None   # invalidate cache

    new_version = PageVersion(
        page_id=page.id,
        version=(prev.version if prev else 0) + 1,
        content=data.content,
        format=data.format or (prev.format if prev else ns.default_format),
        comment=data.comment or "",
    )
    db.add(new_version)
    page.is_redirect = parse_redirect(data.content) is not None
    await db.flush()
    return page, new_version


# -----------------------------------------------------------------------------

async def list_pages(
    db: AsyncSession,
    namespace_name: str,
    skip: int = 0,
    limit: int = 100,
) -> list[dict]:
    """Return lightweight summaries (no content body)."""
    ns = await get_namespace_by_name(db, namespace_name)

    max_ver_sub = (
        select(
            PageVersion.page_id,
            func.max(PageVersion.version).label("max_ver"),
        )
        .group_by(PageVersion.page_id)
        .subquery()
    )

    result = await db.execute(
        select(Page, PageVersion)
        .join(max_ver_sub, Page.id == max_ver_sub.c.page_id)
        .join(
            PageVersion,
            (PageVersion.page_id == Page.id) &
            (PageVersion.version == max_ver_sub.c.max_ver),
        )
        .where(Page.namespace_id == ns.id)
        .order_by(Page.title)
        .offset(skip)
        .limit(limit)
    )

    return [
        {
            "id":         p.id,
            "namespace":  namespace_name,
            "title":      p.title,
            "slug":       p.slug,
            "version":    v.version,
            "format":     v.format,
            "updated_at": v.created_at,
        }
        for p, v in result.all()
    ]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Title-keyed lookups
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def get_page_by_title(db: AsyncSession, title: Title) -> Optional[Page]:
    result = await db.execute(
        select(Page)
        .join(Namespace, Namespace.id == Page.namespace_id)
        .where(_title_clause(title))
    )
    return result.scalar_one_or_none()


# -----------------------------------------------------------------------------

async def title_exists(db: AsyncSession, title: Title) -> bool:
    return await get_page_by_title(db, title) is not None


# -----------------------------------------------------------------------------

async def get_revision_text(db: AsyncSession, title: Title) -> Optional[str]:
    """
    Return the content of the current revision of *title*, or ``None`` when the
    page has no revision.  Storage failures raise ``RevisionAccessError``.
    """
    try:
        result = await db.execute(
            select(PageVersion.content)
            .join(Page, Page.id == PageVersion.page_id)
            .join(Namespace, Namespace.id == Page.namespace_id)
            .where(_title_clause(title))
            .order_by(PageVersion.version.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise RevisionAccessError(f"Cannot read current revision of '{title}'") from exc


# -----------------------------------------------------------------------------

async def pick_random_file_page(
    db: AsyncSession,
    namespace_name: str,
    threshold: float,
    strict: bool = True,
) -> Optional[Title]:
    """
    Return the first non-redirect page in *namespace_name* whose random key is
    above *threshold*, in random-key order.

    With *strict*, only pages backed by an attachment of the same name with an
    ``image/*`` content type qualify.
    """
    q = (
        select(Page.title)
        .join(Namespace, Namespace.id == Page.namespace_id)
        .where(
            Namespace.name == namespace_name,
            Page.is_redirect.is_(False),
            Page.random > threshold,
        )
        .order_by(Page.random)
        .limit(1)
    )
    if strict:
        q = q.join(
            Attachment,
            and_(
                Attachment.page_id == Page.id,
                or_(
                    Attachment.filename == Page.title,
                    Attachment.filename == func.replace(Page.title, " ", "_"),
                ),
            ),
        ).where(func.lower(Attachment.content_type).like("image/%"))

    row = (await db.execute(q)).scalar_one_or_none()
    log.debug("Random pick above %.6f in %s (strict=%s): %r", threshold, namespace_name, strict, row)
    if row is None:
        return None
    return make_title_safe(namespace_name, row)


# -----------------------------------------------------------------------------
