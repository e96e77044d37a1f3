#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Attachment service — upload, list, look up and serve file attachments.

A page in the file namespace is backed by the attachment whose filename
matches the page title; that pairing is what ``find_file`` resolves.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import HTTPException, UploadFile, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.config import get_settings
from randomimage.models import Attachment
from .pages import get_page, get_page_by_title
from .titles import Title, normalize_title_text


# -----------------------------------------------------------------------------

async def upload_attachment(
    db: AsyncSession,
    namespace_name: str,
    page_slug: str,
    file: UploadFile,
    comment: str = "",
) -> Attachment:
    settings = get_settings()

    page, _ = await get_page(db, namespace_name, page_slug)

    data = await file.read()
    if len(data) > settings.max_attachment_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum size of {settings.max_attachment_bytes // 1024 // 1024} MB",
        )

    filename = Path(file.filename or "upload").name
    if namespace_name == settings.file_namespace:
        # File pages are matched to their backing file by normalised name
        filename = normalize_title_text(filename)

    # data/attachments/<namespace>/<slug>/<filename>
    rel_path = Path(namespace_name) / page_slug / filename
    abs_path = settings.attachment_root_resolved / rel_path
    abs_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiofiles.open(abs_path, "wb") as f:
        await f.write(data)

    # Upsert: replace existing attachment with same filename
    existing = await db.execute(
        select(Attachment).where(
            Attachment.page_id == page.id,
            Attachment.filename == filename,
        )
    )
    att = existing.scalar_one_or_none()
    if att is None:
        att = Attachment(page_id=page.id, filename=filename)
        db.add(att)
    att.content_type = file.content_type or "application/octet-stream"
    att.size_bytes   = len(data)
    att.storage_path = str(rel_path)
    att.comment      = comment

    await db.flush()
    return att


# -----------------------------------------------------------------------------

async def list_attachments(
    db: AsyncSession,
    namespace_name: str,
    page_slug: str,
) -> list[Attachment]:
    page, _ = await get_page(db, namespace_name, page_slug)
    result = await db.execute(
        select(Attachment)
        .where(Attachment.page_id == page.id)
        .order_by(Attachment.filename)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def get_attachment_by_id(db: AsyncSession, att_id: str, filename: str) -> Attachment:
    result = await db.execute(
        select(Attachment).where(Attachment.id == att_id, Attachment.filename == filename)
    )
    att = result.scalar_one_or_none()
    if not att:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return att


# -----------------------------------------------------------------------------

async def find_file(db: AsyncSession, title: Title) -> Optional[Attachment]:
    """Return the attachment backing the file page *title*, or ``None``."""
    page = await get_page_by_title(db, title)
    if page is None:
        return None
    result = await db.execute(
        select(Attachment)
        .where(
            Attachment.page_id == page.id,
            or_(Attachment.filename == title.text, Attachment.filename == title.dbkey),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


# -----------------------------------------------------------------------------

def attachment_url(att: Attachment, base_url: str = "") -> str:
    return f"{base_url}/api/v1/attachments/{att.id}/{att.filename}"


# -----------------------------------------------------------------------------
