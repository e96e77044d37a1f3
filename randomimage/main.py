#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
RandomImage — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from randomimage.core.config import get_settings
from randomimage.core.database import create_all_tables, dispose_db, get_session_factory, init_db
from randomimage.routes import attachments, namespaces, pages, render
from randomimage.services import random_image


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    await _seed_defaults()
    yield
    await dispose_db()


# -----------------------------------------------------------------------------

async def _seed_defaults() -> None:
    """Create the default and file namespaces if they don't exist yet."""
    from randomimage.services.namespaces import ensure_namespace

    settings = get_settings()
    factory = get_session_factory()

    async with factory() as session:
        try:
            await ensure_namespace(session, settings.default_namespace, "The default wiki namespace.")
            await ensure_namespace(session, settings.file_namespace, "Image description pages.")
            await session.commit()
        except Exception:
            log.exception("Seeding default namespaces failed")
            await session.rollback()


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    random_image.register()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A small wiki host for the <randomimage> parser extension.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(namespaces.router,  prefix=prefix)
    app.include_router(pages.router,       prefix=prefix)
    app.include_router(attachments.router, prefix=prefix)
    app.include_router(render.router,      prefix=prefix)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(404)
    async def not_found(request: Request, exc):
        detail = getattr(exc, "detail", None) or "Not found"
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": detail},
        )

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
