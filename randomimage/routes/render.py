#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoints.

GET /api/v1/render?content=...&format=wikitext&namespace=Main   — live preview
GET /api/v1/random-image?size=200&float=left&choices=A.png|B.png — one <randomimage>
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.database import get_db
from randomimage.schemas import RandomImageResponse, RenderResponse
from randomimage.services.parser import ParserContext, parse
from randomimage.services.random_image import render_hook


# -----------------------------------------------------------------------------

router = APIRouter(tags=["render"])


# -----------------------------------------------------------------------------

@router.get("/render", response_model=RenderResponse)
async def render_preview(
    response:  Response,
    content:   str = Query(default="", max_length=1_000_000),
    format:    str = Query(default="wikitext"),
    namespace: str = Query(default="Main"),
    db:        AsyncSession = Depends(get_db),
):
    """Return rendered HTML for a snippet of source, used by the live editor preview."""
    context = ParserContext(db, namespace=namespace)
    html = await parse(context, content, format)
    if not context.is_cacheable:
        response.headers["Cache-Control"] = "no-store"
    return {"html": html, "format": format, "cacheable": context.is_cacheable}


# -----------------------------------------------------------------------------

@router.get("/random-image", response_model=RandomImageResponse)
async def random_image(
    response: Response,
    size:     Optional[str] = Query(default=None, max_length=32),
    align:    Optional[str] = Query(default=None, max_length=32, alias="float"),
    choices:  Optional[str] = Query(default=None, max_length=10_000),
    caption:  str           = Query(default="", max_length=10_000),
    db:       AsyncSession  = Depends(get_db),
):
    """Render a single ``<randomimage>`` with the given attributes; ``html`` is empty when nothing matched."""
    attrs = {
        k: v for k, v in (("size", size), ("float", align), ("choices", choices))
        if v is not None
    }
    context = ParserContext(db)
    html = await render_hook(caption, attrs, context)
    if not context.is_cacheable:
        response.headers["Cache-Control"] = "no-store"
    return {"html": html, "cacheable": context.is_cacheable}


# -----------------------------------------------------------------------------
