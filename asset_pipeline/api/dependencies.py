"""FastAPI dependency providers for shared resources."""

import structlog
from fastapi import HTTPException, Request

from asset_pipeline.config import Settings, settings
from asset_pipeline.services.pipeline import AssetIngestionPipeline

logger = structlog.get_logger()


async def get_settings() -> Settings:
    """Get application settings."""
    return settings


async def get_pipeline(request: Request) -> AssetIngestionPipeline:
    """Get the ingestion pipeline created at startup.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        logger.error("pipeline_not_initialized")
        raise HTTPException(status_code=503, detail="Upload pipeline is not ready")
    return pipeline
