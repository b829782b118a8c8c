"""Zenvoyer FastAPI Application Entry Point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import Settings, get_settings
from .routers import (
    stats_router,
    dashboards_router,
    activity_logs_router,
    upload_router,
    notifications_router,
    i18n_router,
    validation_router,
)
from .services.cache import Cache
from .services.dashboards import DashboardService
from .services.email import EmailService
from .services.i18n import Translator
from .services.response_cache import sweep_periodically
from .services.store import DataStore
from .services.uploads import UploadService

logger = logging.getLogger(__name__)

# Resources whose writes change what the cached read routes return
CACHED_RESOURCE_PREFIXES = {
    "users": ["/dashboards/super-admin"],
    "clients": ["/dashboards/user"],
    "invoices": ["/dashboards/user", "/dashboards/super-admin"],
    "tickets": ["/dashboards/admin"],
    "activity_logs": ["/dashboards/admin", "/admin/activity-logs"],
}


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DataStore] = None,
    email_service: Optional[EmailService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    store = store or DataStore()

    cache = Cache(
        ttl=settings.response_cache_ttl,
        max_entries=settings.response_cache_max_entries,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(
            sweep_periodically(cache, settings.response_cache_sweep_interval)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass

    app = FastAPI(
        title="Zenvoyer API",
        description="Invoice management API: dashboards, uploads, notifications",
        version=__version__,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.store = store
    app.state.translator = Translator.from_directory(settings.locales_dir, settings.default_locale)
    app.state.email = email_service or EmailService.from_settings(settings)
    app.state.uploads = UploadService(settings.upload_path, settings.upload_url_prefix)
    app.state.dashboards = DashboardService(store)

    if settings.response_cache_invalidate_on_write:
        def invalidate(resource: str) -> None:
            for path in CACHED_RESOURCE_PREFIXES.get(resource, []):
                cache.invalidate_prefix(f"{settings.api_prefix}{path}")

        store.on_write(invalidate)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers with /api prefix
    app.include_router(stats_router, prefix=settings.api_prefix)
    app.include_router(dashboards_router, prefix=settings.api_prefix)
    app.include_router(activity_logs_router, prefix=settings.api_prefix)
    app.include_router(upload_router, prefix=settings.api_prefix)
    app.include_router(notifications_router, prefix=settings.api_prefix)
    app.include_router(i18n_router, prefix=settings.api_prefix)
    app.include_router(validation_router, prefix=settings.api_prefix)

    # Serve stored uploads
    settings.upload_path.mkdir(parents=True, exist_ok=True)
    app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_path), name="uploads")

    return app


def run():
    """Run the server."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Zenvoyer API running on http://localhost:{settings.port}{settings.api_prefix}")
    uvicorn.run(
        "zenvoyer.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
