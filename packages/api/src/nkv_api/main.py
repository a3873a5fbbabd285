"""FastAPI application for nkv.

Main entry point for the REST API server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from nkv_common import (
    bind_correlation_id,
    configure_logging,
    get_logger,
    get_settings,
    get_task_runner,
    init_telemetry,
)
from nkv_storage import DatabaseConfig, close_connection_pool, get_connection_pool

from nkv_api.errors import register_error_handlers

logger = get_logger(__name__)

CORRELATION_HEADER = "x-correlation-id"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown.

    - Startup: Initialize database connection pool
    - Shutdown: Drain detached tasks, then close the pool
    """
    logger.info("api_starting")

    pool = await get_connection_pool(DatabaseConfig.from_settings())
    app.state.pool = pool

    logger.info("api_started", pool_size=pool.get_size())

    yield

    logger.info("api_stopping")
    cancelled = await get_task_runner().drain(timeout=10.0)
    await close_connection_pool()
    logger.info("api_stopped", cancelled_tasks=cancelled)


async def correlation_middleware(request: Request, call_next):
    """Bind a correlation id (from the header or fresh) for the request."""
    correlation_id = bind_correlation_id(request.headers.get(CORRELATION_HEADER))
    request.state.correlation_id = correlation_id
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_format == "json")
    init_telemetry(service_name="nkv-api", console_export=settings.otel_console_export)

    app = FastAPI(
        title="NKV API",
        description="Knowledge vault, pulse harvesting and tiered research",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(correlation_middleware)
    register_error_handlers(app)

    from nkv_api.routes.health import router as health_router
    from nkv_api.routes.ingest import router as ingest_router
    from nkv_api.routes.pulse import router as pulse_router
    from nkv_api.routes.research import router as research_router
    from nkv_api.routes.search import router as search_router
    from nkv_api.routes.sources import router as sources_router

    app.include_router(health_router, tags=["Health"])
    app.include_router(ingest_router, prefix="/ingest", tags=["Vault"])
    app.include_router(sources_router, prefix="/sources", tags=["Vault"])
    app.include_router(search_router, prefix="/search", tags=["Vault"])
    app.include_router(research_router, tags=["Research"])
    app.include_router(pulse_router, prefix="/pulse", tags=["Pulse"])

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "nkv_api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )
