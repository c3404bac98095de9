"""
flowsync - FastAPI application.

Receives flow execution notifications, reconciles them into the flow
registry and promotes historical flows to incremental pull mode.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowsync import __version__
from flowsync.api.v1 import api_router
from flowsync.core.config import get_settings
from flowsync.core.database import DatabaseManager
from flowsync.core.exceptions import FlowSyncException
from flowsync.core.logging import get_logger, setup_logging
from flowsync.domain.schemas.common import HealthResponse
from flowsync.infrastructure.appflow import AppFlowClient
from flowsync.infrastructure.secrets import load_database_url

# Setup logging
setup_logging()
logger = get_logger(__name__)

# Get settings
settings = get_settings()


def build_database_manager() -> DatabaseManager:
    """Resolve credentials and build the pool. Raises ConfigurationError."""
    database_url = None
    if settings.database_secret_id:
        database_url = load_database_url(settings.database_secret_id, settings.aws_region)
    db_manager = DatabaseManager(settings, database_url=database_url)
    db_manager.initialize()
    return db_manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup failures are fatal: the exception propagates and the server
    never starts accepting requests.
    """
    logger.info(
        "Starting flowsync",
        version=__version__,
        environment=settings.app_env,
    )

    try:
        app.state.db = build_database_manager()
        logger.info("Database initialized successfully")

        app.state.appflow = AppFlowClient(settings)
        logger.info("AppFlow client initialized", region=settings.aws_region)
    except FlowSyncException as e:
        logger.error("Failed to start application", reason=e.message, **e.details)
        raise

    yield

    logger.info("Shutting down flowsync")
    app.state.db.dispose()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="Reconciles AppFlow execution notifications into the flow registry.",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)


# Exception handlers
@app.exception_handler(FlowSyncException)
async def flowsync_exception_handler(
    request: Request, exc: FlowSyncException
) -> JSONResponse:
    """
    Handle tagged flowsync errors.

    Returns a structured error body with the error's HTTP status code.
    """
    logger.warning(
        f"Application exception: {exc.__class__.__name__}",
        error=exc.message,
        path=request.url.path,
        status_code=exc.status_code,
    )

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning("Validation error", errors=exc.errors(), path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "details": {"errors": exc.errors()},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Returns a generic error response and logs exception details.
    """
    logger.error(
        "Unexpected exception",
        error=str(exc),
        type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    # Don't expose internal errors in production
    error_message = str(exc) if settings.debug else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": error_message,
            "details": {},
        },
    )


# Include API routers
app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/", tags=["root"], summary="Root endpoint")
async def root():
    """Return basic service information."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "environment": settings.app_env,
    }


@app.get("/health", tags=["health"], response_model=HealthResponse, summary="Health check")
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Used by load balancers and monitoring systems.
    """
    db_manager = getattr(request.app.state, "db", None)
    db_healthy = False
    if db_manager is not None:
        db_healthy = await asyncio.to_thread(db_manager.check_health)

    return HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks={"database": db_healthy},
    )


def run_server() -> None:
    """Run the API with Uvicorn."""
    uvicorn.run(
        app, host=settings.server_host, port=settings.server_port, log_level="info"
    )


if __name__ == "__main__":
    run_server()
