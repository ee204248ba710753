"""FastAPI application entry point with lifecycle management."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from asset_pipeline import __version__
from asset_pipeline.api.middleware.error_handler import add_exception_handlers
from asset_pipeline.api.middleware.logging import LoggingMiddleware
from asset_pipeline.api.routes import health, upload
from asset_pipeline.config import settings
from asset_pipeline.services.cleanup import ScratchSweeper
from asset_pipeline.services.pipeline import AssetIngestionPipeline

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.log_level)),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


async def sweep_task_runner(sweeper: ScratchSweeper, interval_seconds: int):
    """Background task to periodically delete abandoned scratch files."""
    logger.info("sweep_task_started", interval_seconds=interval_seconds)

    while True:
        try:
            await asyncio.sleep(interval_seconds)
            await sweeper.sweep_expired_files()
        except asyncio.CancelledError:
            logger.info("sweep_task_cancelled")
            break
        except Exception as e:
            logger.error("sweep_task_error", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    # Startup
    logger.info("application_starting", version=__version__)

    app.state.pipeline = AssetIngestionPipeline.from_settings(settings)

    sweep_task = None
    if settings.scratch_sweep_enabled:
        sweeper = ScratchSweeper(settings.scratch_path, settings.scratch_expiration_hours)
        sweep_task = asyncio.create_task(
            sweep_task_runner(sweeper, settings.scratch_sweep_interval_seconds)
        )
    app.state.sweep_task = sweep_task

    logger.info(
        "application_ready",
        scratch_dir=settings.scratch_dir,
        asset_dir=settings.asset_dir,
    )

    yield

    # Shutdown
    logger.info("application_shutting_down")

    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task

    logger.info("application_shutdown_complete")


# Create FastAPI application
app = FastAPI(
    title="Product Image Ingestion API",
    description="Validates uploaded product images and publishes WebP derivatives",
    version=__version__,
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(LoggingMiddleware)  # type: ignore[reportInvalidArgumentType]

# Add exception handlers
add_exception_handlers(app)

# Mount Prometheus metrics at /metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routes
app.include_router(health.router, tags=["health"])
app.include_router(upload.router, prefix="/api/uploads", tags=["uploads"])
