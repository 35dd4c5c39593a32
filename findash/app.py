"""
FinDash Web API - FastAPI entry point.

Usage:
    uvicorn findash.app:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from findash.api.handlers import register_exception_handlers
from findash.api.routers import (
    audit_router,
    auth_router,
    dashboard_router,
    forecast_router,
    payables_router,
    receivables_router,
    system_router,
)
from findash.config import get_config
from findash.database import Database
from findash.settings import Settings
from findash.version import VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the database on startup, close it on shutdown."""
    db = Database()
    await db.connect()

    settings = Settings()
    await settings.init_defaults()
    logger.info("Settings initialized")

    yield

    await db.close()
    logger.info("Database closed")


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routers."""
    config = get_config()

    app = FastAPI(
        title=config.app_name,
        description="Financial operations dashboard",
        version=VERSION,
        debug=config.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(system_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(payables_router, prefix="/api")
    app.include_router(receivables_router, prefix="/api")
    app.include_router(forecast_router, prefix="/api")
    app.include_router(dashboard_router, prefix="/api")
    app.include_router(audit_router, prefix="/api")

    return app


app = create_app()
