"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4

    # File Storage
    scratch_dir: str = Field(
        default="./data/uploads/temp",
        description="Scratch directory for files still being validated or transformed",
    )
    asset_dir: str = Field(
        default="./data/uploads/products",
        description="Permanent storage for primary assets and thumbnails",
    )
    asset_url_prefix: str = Field(
        default="/uploads/products/",
        description="Public URL prefix under which asset_dir is served",
    )

    # Intake limits
    upload_field_name: str = Field(
        default="images",
        description="Multipart form field carrying the image parts",
    )
    max_files_per_request: int = Field(default=10, ge=1, le=50)
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    allowed_media_types: str = Field(
        default="image/jpeg,image/png,image/webp,image/gif",
        description="Comma-separated MIME types accepted at intake",
    )

    # Content validation
    max_image_dimension: int = Field(
        default=4096,
        description="Largest accepted width or height in pixels",
        ge=1,
    )
    enforce_declared_type_match: bool = Field(
        default=True,
        description="Reject files whose decoded format disagrees with the declared MIME type",
    )

    # Derivatives
    primary_max_dimension: int = Field(default=2000, ge=16)
    primary_quality: int = Field(default=85, ge=1, le=100)
    thumbnail_size: int = Field(default=400, ge=16)
    thumbnail_quality: int = Field(default=80, ge=1, le=100)
    webp_method: int = Field(
        default=4,
        description="libwebp effort level (0=fast, 6=slowest/smallest)",
        ge=0,
        le=6,
    )
    transform_concurrency: int = Field(
        default=4,
        description="Maximum number of files re-encoded at the same time",
        ge=1,
    )

    # Scratch reconciliation sweep
    scratch_sweep_enabled: bool = True
    scratch_expiration_hours: int = Field(default=24, ge=1)
    scratch_sweep_interval_seconds: int = Field(default=3600, ge=60)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Development
    debug: bool = False
    reload: bool = False

    @property
    def max_file_size_bytes(self) -> int:
        """Convert max file size from MB to bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def allowed_media_types_list(self) -> list[str]:
        """Parse comma-separated media types into list."""
        return [
            media_type.strip().lower()
            for media_type in self.allowed_media_types.split(",")
            if media_type.strip()
        ]

    @property
    def scratch_path(self) -> Path:
        return Path(self.scratch_dir)

    @property
    def asset_path(self) -> Path:
        return Path(self.asset_dir)


# Global settings instance
settings = Settings()
