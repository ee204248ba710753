"""API response models."""

from pydantic import BaseModel, ConfigDict, Field


class AssetResult(BaseModel):
    """One ingested image, in the shape the catalog persists."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "finalPath": "/uploads/products/images-1729300000000-123456789.webp",
                "filename": "images-1729300000000-123456789.webp",
                "width": 1200,
                "height": 1600,
                "thumbnailPath": "/uploads/products/thumb-images-1729300000000-123456789.webp",
            }
        },
    )

    final_path: str = Field(..., alias="finalPath")
    filename: str
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    thumbnail_path: str = Field(..., alias="thumbnailPath")


class ValidationFailureResponse(BaseModel):
    """Client-side failure: every offending file listed."""

    success: bool = False
    message: str
    errors: list[str]

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "File validation failed",
                "errors": ["huge.png: Image dimensions exceed the maximum (5000x5000, limit 4096px)"],
            }
        }
    }


class ServerErrorResponse(BaseModel):
    """Server-side failure during storage or encoding."""

    success: bool = False
    message: str
    error: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "Image processing failed",
                "error": "front.jpg: failed to write derivative",
            }
        }
    }
