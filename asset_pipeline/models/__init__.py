"""Pydantic models for API request/response and validation."""

from asset_pipeline.models.asset import TransformedAsset
from asset_pipeline.models.upload import DecodedImageMetadata, ImageFormat, MediaType, UploadedFile
from asset_pipeline.models.validation import RejectionReason, ValidationOutcome

__all__ = [
    "DecodedImageMetadata",
    "ImageFormat",
    "MediaType",
    "RejectionReason",
    "TransformedAsset",
    "UploadedFile",
    "ValidationOutcome",
]
