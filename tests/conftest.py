"""Shared pytest fixtures and configuration for all tests."""

import io
from pathlib import Path

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

# ==============================================================================
# Configuration Fixtures
# ==============================================================================


@pytest.fixture
def temp_scratch_dir(tmp_path):
    """Scratch directory path (not created, intake creates it on demand)."""
    return tmp_path / "scratch"


@pytest.fixture
def temp_asset_dir(tmp_path):
    """Permanent asset directory path (created on first write)."""
    return tmp_path / "assets"


@pytest.fixture
def test_settings(temp_scratch_dir, temp_asset_dir):
    """Settings pointing storage at isolated temporary roots."""
    from asset_pipeline.config import Settings

    return Settings(
        scratch_dir=str(temp_scratch_dir),
        asset_dir=str(temp_asset_dir),
        scratch_sweep_enabled=False,
    )


@pytest.fixture
def pipeline(test_settings):
    """Ingestion pipeline rooted at temporary directories."""
    from asset_pipeline.services.pipeline import AssetIngestionPipeline

    return AssetIngestionPipeline.from_settings(test_settings)


# ==============================================================================
# Application Fixtures
# ==============================================================================


@pytest.fixture
def app():
    """Create FastAPI app instance for testing."""
    from asset_pipeline.main import app

    return app


@pytest.fixture
def client(app, pipeline):
    """Synchronous test client for FastAPI endpoints.

    The pipeline built by the lifespan is replaced with one rooted at
    temporary directories.
    """
    with TestClient(app, raise_server_exceptions=True) as test_client:
        app.state.pipeline = pipeline
        yield test_client


# ==============================================================================
# Image Fixtures
# ==============================================================================


@pytest.fixture
def make_image_bytes():
    """Factory fixture producing encoded images with Pillow.

    Example:
        >>> make_image_bytes("PNG", (640, 480), mode="RGBA")
    """
    from PIL import Image

    def _make(
        image_format: str = "JPEG",
        size: tuple[int, int] = (800, 600),
        mode: str = "RGB",
        color=None,
        **save_kwargs,
    ) -> bytes:
        if color is None:
            color = {"RGB": (200, 80, 40), "RGBA": (200, 80, 40, 128), "L": 128, "P": 3}.get(mode, 0)
        image = Image.new(mode, size, color=color)
        # A gradient band keeps resize output from being trivially uniform
        if mode in ("RGB", "RGBA"):
            for x in range(min(size[0], 64)):
                for y in range(min(size[1], 64)):
                    image.putpixel((x, y), (x * 4, y * 4, 100) + ((255,) if mode == "RGBA" else ()))
        buffer = io.BytesIO()
        image.save(buffer, format=image_format, **save_kwargs)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_jpeg_bytes(make_image_bytes):
    """Valid 800x600 JPEG."""
    return make_image_bytes("JPEG", (800, 600))


@pytest.fixture
def sample_png_bytes(make_image_bytes):
    """Valid 640x480 PNG with alpha."""
    return make_image_bytes("PNG", (640, 480), mode="RGBA")


@pytest.fixture
def sample_gif_bytes(make_image_bytes):
    """Valid 320x240 palette GIF."""
    return make_image_bytes("GIF", (320, 240), mode="P")


@pytest.fixture
def sample_webp_bytes(make_image_bytes):
    """Valid 500x500 WebP."""
    return make_image_bytes("WEBP", (500, 500))


@pytest.fixture
def invalid_file_bytes():
    """Bytes that are not an image."""
    return b"INVALID_FORMAT" + b"\x00" * 100


@pytest.fixture
def create_upload_file():
    """Factory fixture to create UploadFile instances with custom content.

    Returns:
        Callable that takes bytes, filename and content type and returns UploadFile
    """

    def _create(
        content: bytes, filename: str | None = "test.jpg", content_type: str = "image/jpeg"
    ) -> UploadFile:
        file_obj = io.BytesIO(content)
        return UploadFile(
            file=file_obj,
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _create


@pytest.fixture
def make_uploaded_file(tmp_path):
    """Factory fixture writing bytes to disk and wrapping them in an UploadedFile."""
    from asset_pipeline.models.upload import UploadedFile

    counter = {"n": 0}

    def _make(
        content: bytes,
        original_name: str = "photo.jpg",
        declared_media_type: str = "image/jpeg",
    ) -> UploadedFile:
        counter["n"] += 1
        directory = tmp_path / "staged"
        directory.mkdir(exist_ok=True)
        suffix = Path(original_name).suffix.lower()
        temp_path = directory / f"images-1700000000000-{counter['n']:09d}{suffix}"
        temp_path.write_bytes(content)
        return UploadedFile(
            field_name="images",
            original_name=original_name,
            declared_media_type=declared_media_type,
            temporary_path=temp_path,
            size_bytes=len(content),
        )

    return _make
