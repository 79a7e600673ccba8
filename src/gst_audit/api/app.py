"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers and the
lifespan that owns the database connection and the trigger timers.

Manifesto:
    The app factory is the single composition root for HTTP: settings,
    the service graph, middleware and routers are wired here so routers
    only ever see an operation context.

Tags:
    api, app-factory, composition-root, FastAPI, lifespan
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from gst_audit import __version__
from gst_audit.api.middleware.errors import gst_audit_error_handler, unhandled_exception_handler
from gst_audit.api.middleware.opportunistic import OpportunisticTriggerMiddleware
from gst_audit.api.middleware.request_id import RequestIDMiddleware
from gst_audit.core.connection import create_connection
from gst_audit.core.errors import GstAuditError
from gst_audit.core.logging import get_logger
from gst_audit.core.settings import GstAuditSettings, get_settings
from gst_audit.ops.context import Services, build_services

log = get_logger("gst_audit.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: open the database, start and stop the timers."""
    settings: GstAuditSettings = app.state.settings
    log.info("api.starting", version=app.version)

    owned_conn = None
    services: Services | None = app.state.services
    if services is None:
        owned_conn, info = create_connection(
            settings.database_url,
            init_schema=True,
            data_dir=settings.data_dir,
        )
        log.info("database.initialized", backend=info.backend, path=info.resolved_path)
        services = build_services(owned_conn, settings)
        app.state.services = services

    if settings.timers_enabled:
        services.trigger.start()

    try:
        yield
    finally:
        services.trigger.stop()
        if owned_conn is not None:
            owned_conn.close()
            app.state.services = None
        log.info("api.shutting_down")


def create_app(
    settings: GstAuditSettings | None = None,
    services: Services | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Args:
        settings: Override settings (tests).  Defaults to the cached
            process settings.
        services: A pre-built service graph (tests).  When ``None`` the
            lifespan opens ``settings.database_url`` and builds one.
    """
    settings = settings or (services.settings if services else get_settings())

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version or __version__,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.services = services
    app.dependency_overrides[get_settings] = lambda: settings

    prefix = settings.api_prefix

    # ── Middleware (outermost → innermost) ────────────────────────────
    if settings.opportunistic_enabled:
        app.add_middleware(OpportunisticTriggerMiddleware, skip_paths=(f"{prefix}/trigger",))
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(GstAuditError, gst_audit_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from gst_audit.api.routers import access, products, reports, schedule, trigger

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "service": "gst-audit", "version": app.version}

    app.include_router(trigger.router, prefix=prefix, tags=["trigger"])
    app.include_router(schedule.router, prefix=prefix, tags=["schedule"])
    app.include_router(reports.router, prefix=prefix, tags=["reports"])
    app.include_router(products.router, prefix=prefix, tags=["products"])
    app.include_router(access.router, prefix=prefix, tags=["access"])

    return app
