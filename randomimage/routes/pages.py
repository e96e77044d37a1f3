#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pages router
============
GET    /api/v1/namespaces/{ns}/pages                — list pages
POST   /api/v1/namespaces/{ns}/pages                — create page
GET    /api/v1/namespaces/{ns}/pages/{slug}         — get latest (rendered)
GET    /api/v1/namespaces/{ns}/pages/{slug}/raw     — get raw source
PUT    /api/v1/namespaces/{ns}/pages/{slug}         — save new version

Rendered HTML is cached on the version row unless an extension marked the
output non-cacheable; such responses also carry ``Cache-Control: no-store``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.database import get_db
from randomimage.schemas import PageCreate, PageResponse, PageSummary, PageUpdate
from randomimage.services import pages as page_svc
from randomimage.services.parser import ParserContext, parse
from randomimage.services.renderer import is_cache_valid, stamp, unstamp


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/namespaces/{namespace_name}/pages", tags=["pages"])


# -----------------------------------------------------------------------------

async def _render_version(db: AsyncSession, namespace_name: str, ver, cache: bool) -> tuple[str, bool]:
    """Return (html, cacheable) for *ver*, using and refreshing its cached copy."""
    if cache and is_cache_valid(ver.rendered):
        return unstamp(ver.rendered), True

    context = ParserContext(db, namespace=namespace_name)
    html = await parse(context, ver.content, ver.format)
    if cache:
        ver.rendered = stamp(html) if context.is_cacheable else None
    return html, context.is_cacheable


def _no_store(response: Response, cacheable: bool) -> None:
    if not cacheable:
        response.headers["Cache-Control"] = "no-store"


# ── List ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[PageSummary])
async def list_pages(
    namespace_name: str,
    skip:  int       = Query(0, ge=0),
    limit: int       = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await page_svc.list_pages(db, namespace_name, skip=skip, limit=limit)


# ── Create ────────────────────────────────────────────────────────────────────

@router.post("", response_model=PageResponse, status_code=201)
async def create_page(
    namespace_name: str,
    data: PageCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    page, ver = await page_svc.create_page(db, namespace_name, data)
    rendered, cacheable = await _render_version(db, namespace_name, ver, cache=True)
    _no_store(response, cacheable)
    return _page_response(namespace_name, page, ver, rendered, cacheable)


# ── Read ──────────────────────────────────────────────────────────────────────

@router.get("/{slug}", response_model=PageResponse)
async def get_page(
    namespace_name: str,
    slug: str,
    response: Response,
    version: Optional[int] = Query(None, ge=1),
    render_html: bool      = Query(True, alias="render"),
    db: AsyncSession       = Depends(get_db),
):
    page, ver = await page_svc.get_page(db, namespace_name, slug, version=version)

    rendered, cacheable = None, True
    if render_html:
        rendered, cacheable = await _render_version(db, namespace_name, ver, cache=version is None)
        _no_store(response, cacheable)

    return _page_response(namespace_name, page, ver, rendered, cacheable)


# ── Raw source ────────────────────────────────────────────────────────────────

@router.get("/{slug}/raw")
async def get_page_raw(
    namespace_name: str,
    slug: str,
    version: Optional[int] = Query(None, ge=1),
    db: AsyncSession       = Depends(get_db),
):
    """Return raw source as plain text (``<randomcaption>`` markers included)."""
    _, ver = await page_svc.get_page(db, namespace_name, slug, version=version)
    return Response(content=ver.content, media_type="text/plain; charset=utf-8")


# ── Update ────────────────────────────────────────────────────────────────────

@router.put("/{slug}", response_model=PageResponse)
async def update_page(
    namespace_name: str,
    slug: str,
    data: PageUpdate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    page, ver = await page_svc.update_page(db, namespace_name, slug, data)
    rendered, cacheable = await _render_version(db, namespace_name, ver, cache=True)
    _no_store(response, cacheable)
    return _page_response(namespace_name, page, ver, rendered, cacheable)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Response builders
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _page_response(namespace_name, page, ver, rendered, cacheable) -> dict:
    return {
        "id":          page.id,
        "namespace":   namespace_name,
        "title":       page.title,
        "slug":        page.slug,
        "version":     ver.version,
        "content":     ver.content,
        "format":      ver.format,
        "is_redirect": page.is_redirect,
        "rendered":    rendered,
        "cacheable":   cacheable,
        "comment":     ver.comment,
        "created_at":  page.created_at,
        "updated_at":  ver.created_at,
    }


# -----------------------------------------------------------------------------
