"""Upload models for file handling."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from asset_pipeline.models.validation import ValidationOutcome


class MediaType(str, Enum):
    """Image media types accepted from clients."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    WEBP = "image/webp"
    GIF = "image/gif"

    @property
    def extensions(self) -> tuple[str, ...]:
        """File extensions registered for the media type."""
        extensions = {
            MediaType.JPEG: (".jpg", ".jpeg"),
            MediaType.PNG: (".png",),
            MediaType.WEBP: (".webp",),
            MediaType.GIF: (".gif",),
        }
        return extensions[self]


class ImageFormat(str, Enum):
    """Format of an image as reported by the decoder."""

    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"
    GIF = "GIF"
    OTHER = "OTHER"

    @classmethod
    def from_pillow(cls, pillow_format: str | None) -> "ImageFormat":
        # Pillow reports MPO for multi-picture JPEGs written by many cameras
        if pillow_format == "MPO":
            return cls.JPEG
        try:
            return cls(pillow_format)
        except ValueError:
            return cls.OTHER

    @property
    def media_type(self) -> MediaType | None:
        media_types = {
            ImageFormat.JPEG: MediaType.JPEG,
            ImageFormat.PNG: MediaType.PNG,
            ImageFormat.WEBP: MediaType.WEBP,
            ImageFormat.GIF: MediaType.GIF,
        }
        return media_types.get(self)


class DecodedImageMetadata(BaseModel):
    """Facts read from the encoded bytes, never from client claims."""

    true_format: ImageFormat
    width_px: int = Field(..., ge=0)
    height_px: int = Field(..., ge=0)
    has_alpha_channel: bool
    frame_count: int = Field(default=1, ge=1)

    model_config = {"frozen": True}


class UploadedFile(BaseModel):
    """One multipart part written to scratch storage."""

    field_name: str = Field(..., description="Form field the part arrived under")
    original_name: str = Field(..., description="Client-supplied filename (untrusted)")
    declared_media_type: str = Field(..., description="Client-supplied MIME type (untrusted)")
    temporary_path: Path = Field(..., description="Path to the scratch copy")
    size_bytes: int = Field(..., description="File size in bytes", ge=0)
    outcome: ValidationOutcome | None = None
    metadata: DecodedImageMetadata | None = None

    model_config = {
        "arbitrary_types_allowed": True,
        "json_schema_extra": {
            "example": {
                "field_name": "images",
                "original_name": "front.jpg",
                "declared_media_type": "image/jpeg",
                "temporary_path": "./data/uploads/temp/images-1729300000000-123456789.jpg",
                "size_bytes": 482133,
            }
        },
    }

    @property
    def extension(self) -> str:
        return Path(self.original_name).suffix.lower()

    @property
    def is_rejected(self) -> bool:
        return self.outcome is not None and self.outcome.rejected

    def annotate(self, outcome: ValidationOutcome) -> None:
        """Attach the file's single validation outcome.

        Raises:
            ValueError: If an outcome was already attached
        """
        if self.outcome is not None:
            raise ValueError(f"{self.original_name} already has a validation outcome")
        self.outcome = outcome
