#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Namespaces router
=================
GET  /api/v1/namespaces   — list namespaces
POST /api/v1/namespaces   — create namespace
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from randomimage.core.database import get_db
from randomimage.schemas import NamespaceCreate, NamespaceResponse
from randomimage.services import namespaces as ns_svc


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/namespaces", tags=["namespaces"])


# -----------------------------------------------------------------------------

@router.get("", response_model=list[NamespaceResponse])
async def list_namespaces(
    skip:  int       = Query(0, ge=0),
    limit: int       = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await ns_svc.list_namespaces(db, skip=skip, limit=limit)


# -----------------------------------------------------------------------------

@router.post("", response_model=NamespaceResponse, status_code=201)
async def create_namespace(
    data: NamespaceCreate,
    db: AsyncSession = Depends(get_db),
):
    return await ns_svc.create_namespace(db, data)


# -----------------------------------------------------------------------------
