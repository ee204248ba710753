"""Assembles per-file results for the catalog."""

from asset_pipeline.models.asset import TransformedAsset
from asset_pipeline.models.responses import AssetResult
from asset_pipeline.models.upload import UploadedFile


def public_path(url_prefix: str, filename: str) -> str:
    return f"{url_prefix.rstrip('/')}/{filename}"


def finalize_batch(
    batch: list[UploadedFile],
    assets: list[TransformedAsset],
    url_prefix: str = "/uploads/products/",
) -> list[AssetResult]:
    """Pair each file with its derivatives, in submission order. No I/O."""
    if len(batch) != len(assets):
        raise ValueError(f"{len(batch)} files but {len(assets)} transformed assets")

    return [
        AssetResult(
            final_path=public_path(url_prefix, asset.primary_path.name),
            filename=asset.primary_path.name,
            width=asset.width_px,
            height=asset.height_px,
            thumbnail_path=public_path(url_prefix, asset.thumbnail_path.name),
        )
        for asset in assets
    ]
