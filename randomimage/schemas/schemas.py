#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

CONTENT_FORMATS = {"markdown", "wikitext"}


def _check_format(v: str | None) -> str | None:
    if v is not None and v not in CONTENT_FORMATS:
        raise ValueError(f"format must be one of: {', '.join(sorted(CONTENT_FORMATS))}")
    return v


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Namespaces
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NamespaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, pattern=r"^[A-Za-z][A-Za-z0-9_-]*$")
    description: str = Field(default="", max_length=1000)
    default_format: str = Field(default="wikitext")

    @field_validator("default_format")
    @classmethod
    def valid_format(cls, v: str) -> str:
        return _check_format(v)


# -----------------------------------------------------------------------------

class NamespaceResponse(BaseModel):
    id: str
    name: str
    description: str
    default_format: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=512)
    content: str = Field(default="", max_length=10_000_000)
    format: Optional[str] = None
    comment: str = Field(default="", max_length=512)

    @field_validator("format")
    @classmethod
    def valid_format(cls, v: str | None) -> str | None:
        return _check_format(v)


# -----------------------------------------------------------------------------

class PageUpdate(BaseModel):
    content: str = Field(..., max_length=10_000_000)
    format: Optional[str] = None
    comment: str = Field(default="", max_length=512)

    @field_validator("format")
    @classmethod
    def valid_format(cls, v: str | None) -> str | None:
        return _check_format(v)


# -----------------------------------------------------------------------------

class PageResponse(BaseModel):
    id: str
    namespace: str
    title: str
    slug: str
    version: int
    content: str
    format: str
    is_redirect: bool
    rendered: Optional[str]
    cacheable: bool = True
    comment: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------

class PageSummary(BaseModel):
    """Lightweight listing item (no content body)."""
    id: str
    namespace: str
    title: str
    slug: str
    version: int
    format: str
    updated_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Attachments
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AttachmentResponse(BaseModel):
    id: str
    page_id: str
    filename: str
    content_type: str
    size_bytes: int
    comment: str
    uploaded_at: datetime
    url: str

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderResponse(BaseModel):
    html: str
    format: str
    cacheable: bool


# -----------------------------------------------------------------------------

class RandomImageResponse(BaseModel):
    """Output of a single ``<randomimage>`` expansion; ``html`` is empty when no image was found."""
    html: str
    cacheable: bool
