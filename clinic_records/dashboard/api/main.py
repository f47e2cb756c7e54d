"""Main FastAPI application for the Clinic Records dashboard.

This module sets up the FastAPI application with all routes, middleware,
and configuration for the records API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from clinic_records import __version__
from clinic_records.dashboard.api.logging_config import setup_logging
from clinic_records.dashboard.api.middleware import setup_middleware
from clinic_records.dashboard.api.routes import health, records, stats
from clinic_records.domain.kinds import RecordKind
from clinic_records.domain.ports import StoragePort
from clinic_records.infrastructure.settings import Settings, settings
from clinic_records.main import bootstrap_storage, create_storage_adapter

setup_logging(use_json=settings.json_logs, log_level=settings.log_level)

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None, storage: Optional[StoragePort] = None) -> FastAPI:
    """Build the API application.

    Parameters:
        app_settings: Application settings; the global settings if omitted
        storage: Already prepared storage adapter. When omitted, the
            lifespan creates one from configuration, initializes the
            schema (and demo data if enabled) and closes it on shutdown.
            A supplied adapter is used as-is and left open.

    Returns:
        FastAPI: Configured application
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{app_settings.app_name} API starting up...")
        owns_storage = app.state.storage is None
        if owns_storage:
            app.state.storage = create_storage_adapter(app_settings.db_config)
            result = bootstrap_storage(app.state.storage, seed=app_settings.seed_demo_data)
            if result.is_failure():
                app.state.storage.close()
                app.state.storage = None
                raise RuntimeError(f"Storage initialization failed: {result.error}")
            logger.info(f"Storage ready: {app_settings.db_config.describe()}")
        logger.info("API documentation available at /api/docs")

        yield

        logger.info(f"{app_settings.app_name} API shutting down...")
        if owns_storage and app.state.storage is not None:
            app.state.storage.close()
            app.state.storage = None

    app = FastAPI(
        title=f"{app_settings.app_name} API",
        description="Registration, expiry tracking and statistics for clinic files",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan
    )
    app.state.settings = app_settings
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Process-Time"],
    )

    setup_middleware(app, app_settings)

    app.include_router(health.router)
    app.include_router(stats.router)
    for router in records.routers:
        app.include_router(router)

    @app.get("/")
    async def root(request: Request):
        """Root endpoint."""
        return {
            "message": f"{request.app.state.settings.app_name} API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/api/health",
            "kinds": [kind.value for kind in RecordKind],
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_records.dashboard.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
