#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for RandomImage
==========================

Tables
------
namespaces      — wiki namespaces; the file namespace holds image description pages
pages           — wiki pages, each carrying a random sort key for random picks
page_versions   — append-only version history (one row per save)
attachments     — files backing a page (a File: page's image lives here)

All primary keys are UUIDs.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from random import random as _random_key
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, Boolean, DateTime, Float, ForeignKey, Index, Integer,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from randomimage.core.database import Base


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36); works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# namespaces
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Namespace(Base):
    """
    Wiki namespace (Main, File, ...).  The default content format for new
    pages is stored here but can be overridden per-page.
    """
    __tablename__ = "namespaces"

    id:             Mapped[str]      = _uuid_col(primary_key=True)
    name:           Mapped[str]      = mapped_column(String(128), unique=True, nullable=False, index=True)
    description:    Mapped[str]      = mapped_column(Text, default="", nullable=False)
    default_format: Mapped[str]      = mapped_column(String(16), default="wikitext", nullable=False)
    created_at:     Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    pages: Mapped[list["Page"]] = relationship(back_populates="namespace", cascade="all, delete-orphan")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"
    __table_args__ = (
        UniqueConstraint("namespace_id", "slug", name="uq_pages_ns_slug"),
        Index("ix_pages_ns_random", "namespace_id", "random"),
    )

    id:           Mapped[str]      = _uuid_col(primary_key=True)
    namespace_id: Mapped[str]      = mapped_column(String(36), ForeignKey("namespaces.id", ondelete="CASCADE"), nullable=False, index=True)
    title:        Mapped[str]      = mapped_column(String(512), nullable=False, index=True)
    slug:         Mapped[str]      = mapped_column(String(512), nullable=False, index=True)
    is_redirect:  Mapped[bool]     = mapped_column(Boolean, default=False, nullable=False)
    # Uniform sort key in [0, 1); random picks take the first row above a draw
    random:       Mapped[float]    = mapped_column(Float, default=_random_key, nullable=False)
    created_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    namespace:   Mapped["Namespace"]         = relationship(back_populates="pages")
    versions:    Mapped[list["PageVersion"]] = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="PageVersion.version",
    )
    attachments: Mapped[list["Attachment"]]  = relationship(back_populates="page", cascade="all, delete-orphan")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# page_versions  (append-only)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageVersion(Base):
    __tablename__ = "page_versions"
    __table_args__ = (
        UniqueConstraint("page_id", "version", name="uq_page_versions_page_ver"),
    )

    id:         Mapped[str]        = _uuid_col(primary_key=True)
    page_id:    Mapped[str]        = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    version:    Mapped[int]        = mapped_column(Integer, nullable=False)
    content:    Mapped[str]        = mapped_column(Text, nullable=False, default="")
    # "wikitext" or "markdown"
    format:     Mapped[str]        = mapped_column(String(16), nullable=False, default="wikitext")
    # Cached rendered HTML; left empty when the render was marked non-cacheable
    rendered:   Mapped[str | None] = mapped_column(Text, nullable=True)
    comment:    Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    created_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    page: Mapped["Page"] = relationship(back_populates="versions")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# attachments
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Attachment(Base):
    __tablename__ = "attachments"
    __table_args__ = (
        UniqueConstraint("page_id", "filename", name="uq_attachments_page_file"),
    )

    id:           Mapped[str]      = _uuid_col(primary_key=True)
    page_id:      Mapped[str]      = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    filename:     Mapped[str]      = mapped_column(String(255), nullable=False)
    content_type: Mapped[str]      = mapped_column(String(128), default="application/octet-stream", nullable=False)
    size_bytes:   Mapped[int]      = mapped_column(BigInteger, default=0, nullable=False)
    storage_path: Mapped[str]      = mapped_column(String(512), nullable=False)
    comment:      Mapped[str]      = mapped_column(String(512), default="", nullable=False)
    uploaded_at:  Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    page: Mapped["Page"] = relationship(back_populates="attachments")


# -----------------------------------------------------------------------------
