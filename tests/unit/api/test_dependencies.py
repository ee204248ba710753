"""Unit tests for FastAPI dependency providers."""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI, HTTPException

from asset_pipeline.api.dependencies import get_pipeline, get_settings
from asset_pipeline.config import Settings


@pytest.mark.asyncio
async def test_get_settings():
    """Test get_settings dependency returns the settings object."""
    assert isinstance(await get_settings(), Settings)


@pytest.mark.asyncio
async def test_get_pipeline_returns_app_state(pipeline):
    app = FastAPI()
    app.state.pipeline = pipeline
    request = Mock()
    request.app = app

    assert await get_pipeline(request) is pipeline


@pytest.mark.asyncio
async def test_get_pipeline_before_startup_is_503():
    """Test that requests arriving before startup completes get 503."""
    request = Mock()
    request.app = FastAPI()

    with pytest.raises(HTTPException) as exc_info:
        await get_pipeline(request)

    assert exc_info.value.status_code == 503
