"""Derivative asset models."""

from pathlib import Path

from pydantic import BaseModel, Field

OUTPUT_FORMAT = "webp"


class TransformedAsset(BaseModel):
    """Primary asset and thumbnail produced from one accepted file.

    Ownership of both paths passes to the catalog once returned.
    """

    primary_path: Path
    primary_format: str = OUTPUT_FORMAT
    thumbnail_path: Path
    width_px: int = Field(..., gt=0)
    height_px: int = Field(..., gt=0)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}
