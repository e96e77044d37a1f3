#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
Attachments router
==================
GET    /api/v1/namespaces/{ns}/pages/{slug}/attachments   — list
POST   /api/v1/namespaces/{ns}/pages/{slug}/attachments   — upload
GET    /api/v1/attachments/{att_id}/{filename}            — direct URL
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.config import get_settings
from randomimage.core.database import get_db
from randomimage.schemas import AttachmentResponse
from randomimage.services.attachments import (
    attachment_url, get_attachment_by_id, list_attachments, upload_attachment,
)


# ----------------------------------------------------------------------------

router = APIRouter(tags=["attachments"])

_page_prefix = "/namespaces/{namespace_name}/pages/{slug}/attachments"


# ── List ──────────────────────────────────────────────────────────────────────

@router.get(_page_prefix, response_model=list[AttachmentResponse])
async def list_page_attachments(
    namespace_name: str,
    slug: str,
    db: AsyncSession = Depends(get_db),
):
    settings = get_settings()
    atts = await list_attachments(db, namespace_name, slug)
    return [_att_dict(a, settings.base_url) for a in atts]


# ── Upload ────────────────────────────────────────────────────────────────────

@router.post(_page_prefix, response_model=AttachmentResponse, status_code=201)
async def upload_page_attachment(
    namespace_name: str,
    slug: str,
    file: UploadFile,
    comment: str     = Form(default=""),
    db: AsyncSession = Depends(get_db),
):
    settings = get_settings()
    att = await upload_attachment(db, namespace_name, slug, file, comment=comment)
    return _att_dict(att, settings.base_url)


# ── Direct attachment URL (by UUID) ──────────────────────────────────────────

@router.get("/attachments/{att_id}/{filename}")
async def serve_attachment(
    att_id: str,
    filename: str,
    db: AsyncSession = Depends(get_db),
):
    att = await get_attachment_by_id(db, att_id, filename)
    abs_path = get_settings().attachment_root_resolved / att.storage_path
    if not abs_path.exists():
        raise HTTPException(status_code=404, detail="File not found on disk")
    return FileResponse(str(abs_path), media_type=att.content_type, filename=att.filename)


# -----------------------------------------------------------------------------

def _att_dict(att, base_url: str) -> dict:
    return {
        "id":           att.id,
        "page_id":      att.page_id,
        "filename":     att.filename,
        "content_type": att.content_type,
        "size_bytes":   att.size_bytes,
        "comment":      att.comment,
        "uploaded_at":  att.uploaded_at,
        "url":          attachment_url(att, base_url),
    }


# -----------------------------------------------------------------------------
