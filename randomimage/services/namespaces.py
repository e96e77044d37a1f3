#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Namespace service — create, read and list wiki namespaces.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.models import Namespace
from randomimage.schemas import NamespaceCreate


# -----------------------------------------------------------------------------

async def create_namespace(db: AsyncSession, data: NamespaceCreate) -> Namespace:
    existing = await db.execute(select(Namespace).where(Namespace.name == data.name))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Namespace '{data.name}' already exists",
        )

    ns = Namespace(
        name=data.name,
        description=data.description,
        default_format=data.default_format,
    )
    db.add(ns)
    await db.flush()
    return ns


# -----------------------------------------------------------------------------

async def ensure_namespace(
    db: AsyncSession,
    name: str,
    description: str = "",
    default_format: str = "wikitext",
) -> Namespace:
    """Return namespace *name*, creating it first if it does not exist yet."""
    result = await db.execute(select(Namespace).where(Namespace.name == name))
    ns = result.scalar_one_or_none()
    if ns is None:
        ns = Namespace(name=name, description=description, default_format=default_format)
        db.add(ns)
        await db.flush()
    return ns


# -----------------------------------------------------------------------------

async def get_namespace_by_name(db: AsyncSession, name: str) -> Namespace:
    result = await db.execute(select(Namespace).where(Namespace.name == name))
    ns = result.scalar_one_or_none()
    if not ns:
        raise HTTPException(status_code=404, detail=f"Namespace '{name}' not found")
    return ns


# -----------------------------------------------------------------------------

async def list_namespaces(db: AsyncSession, skip: int = 0, limit: int = 100) -> list[Namespace]:
    result = await db.execute(
        select(Namespace).order_by(Namespace.name).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------
