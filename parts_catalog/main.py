"""Parts catalog API main application module.

This module initializes the FastAPI application and configures
middleware, routers, error mapping and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from parts_catalog.api.catalog import router as catalog_router
from parts_catalog.api.health import router as health_router
from parts_catalog.api.middleware import setup_middleware
from parts_catalog.catalog.service import get_catalog_service
from parts_catalog.infrastructure.config import settings
from parts_catalog.infrastructure.database import DatabaseError, engine
from parts_catalog.infrastructure.logging_config import configure_logging

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting parts catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )

    if settings.catalog_preload_on_startup:
        try:
            await get_catalog_service().preload_catalog()
        except DatabaseError as e:
            # Serve anyway; snapshots load on first request
            logger.warning("Catalog preload failed", error=e.message, details=e.details)

    yield

    logger.info("Shutting down parts catalog API")
    await engine.dispose()


app = FastAPI(
    title="Parts Catalog API",
    description="Product and assembly catalog with in-memory snapshots",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

setup_middleware(app)

app.include_router(health_router, tags=["Health"])
app.include_router(catalog_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "request_id": request_id,
        },
    )


@app.exception_handler(DatabaseError)
async def database_exception_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Map backing-store failures to 503."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "Catalog store unavailable",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=exc.message,
    )

    return JSONResponse(
        status_code=503,
        content={
            "error_code": "CATALOG_UNAVAILABLE",
            "message": "The catalog store is unavailable",
            "details": [],
            "request_id": request_id,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )

    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_ERROR",
            "message": "An internal error occurred",
            "details": [],
            "request_id": request_id,
        },
    )
