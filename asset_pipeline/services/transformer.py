"""Re-encodes accepted files into a WebP primary asset and thumbnail."""

import asyncio
import io
import time
from dataclasses import dataclass
from pathlib import Path

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError

from asset_pipeline.exceptions import DecodeFailureError, EncodeFailureError, TransformError
from asset_pipeline.models.asset import OUTPUT_FORMAT, TransformedAsset
from asset_pipeline.models.upload import UploadedFile
from asset_pipeline.services.storage import AssetStorage, ScratchStorage
from asset_pipeline.utils import metrics
from asset_pipeline.utils.security import derivative_filenames

logger = structlog.get_logger()

RESAMPLE = Image.Resampling.LANCZOS


@dataclass(frozen=True)
class RenderSettings:
    """Encoder settings. Identical settings give byte-identical output."""

    primary_max_dimension: int = 2000
    primary_quality: int = 85
    thumbnail_size: int = 400
    thumbnail_quality: int = 80
    webp_method: int = 4


@dataclass(frozen=True)
class RenderedDerivatives:
    primary: bytes
    thumbnail: bytes
    width: int
    height: int


def load_source(source: Path) -> Image.Image:
    """
    Decode the first frame of a source image into RGB or RGBA.

    Raises:
        DecodeFailureError: If the image cannot be decoded
    """
    try:
        with Image.open(source) as image:
            image.seek(0)
            image.load()
            mode = "RGBA" if image.has_transparency_data else "RGB"
            normalized = image.convert(mode)
    except UnidentifiedImageError as e:
        raise DecodeFailureError("Failed to decode image: unrecognized image data") from e
    except Exception as e:
        raise DecodeFailureError(f"Failed to decode image: {e}") from e

    # EXIF and ICC data are not carried into derivatives
    normalized.info.clear()
    return normalized


def encode_webp(image: Image.Image, quality: int, method: int) -> bytes:
    """
    Encode an image as WebP.

    Raises:
        EncodeFailureError: If encoding fails
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="WEBP", quality=quality, method=method)
    except Exception as e:
        raise EncodeFailureError(f"WebP encoding failed: {e}") from e
    return buffer.getvalue()


def render_derivatives(source: Path, render: RenderSettings) -> RenderedDerivatives:
    """
    Produce primary and thumbnail bytes for one source file.

    The primary fits inside a square box of ``primary_max_dimension`` with
    aspect ratio preserved and is never upscaled. The thumbnail is a
    centered cover crop of exactly ``thumbnail_size`` square.
    """
    image = load_source(source)
    try:
        primary = image.copy()
        box = render.primary_max_dimension
        primary.thumbnail((box, box), RESAMPLE, reducing_gap=None)

        thumbnail = ImageOps.fit(
            image,
            (render.thumbnail_size, render.thumbnail_size),
            method=RESAMPLE,
            centering=(0.5, 0.5),
        )
    except Exception as e:
        raise EncodeFailureError(f"Failed to resize image: {e}") from e

    return RenderedDerivatives(
        primary=encode_webp(primary, render.primary_quality, render.webp_method),
        thumbnail=encode_webp(thumbnail, render.thumbnail_quality, render.webp_method),
        width=primary.width,
        height=primary.height,
    )


class Transformer:
    """Promotes accepted scratch files to permanent derivatives."""

    def __init__(
        self,
        scratch: ScratchStorage,
        assets: AssetStorage,
        render: RenderSettings | None = None,
        concurrency: int = 4,
    ):
        self.scratch = scratch
        self.assets = assets
        self.render = render or RenderSettings()
        self.concurrency = concurrency

    async def transform(self, upload: UploadedFile) -> TransformedAsset:
        """
        Write both derivatives for an accepted file, then delete its scratch copy.

        Raises:
            ValueError: If the file was not accepted
            DecodeFailureError, EncodeFailureError: If image processing fails
            StorageWriteFailureError: If a derivative cannot be written
        """
        if upload.outcome is None or not upload.outcome.accepted:
            raise ValueError(f"{upload.original_name} has not been accepted")

        start_time = time.time()
        try:
            rendered = await asyncio.to_thread(render_derivatives, upload.temporary_path, self.render)

            primary_name, thumbnail_name = derivative_filenames(upload.temporary_path, OUTPUT_FORMAT)
            primary_path = await self.assets.write(rendered.primary, primary_name)
            metrics.derivatives_written_total.labels(kind="primary").inc()
            thumbnail_path = await self.assets.write(rendered.thumbnail, thumbnail_name)
            metrics.derivatives_written_total.labels(kind="thumbnail").inc()
        except TransformError as e:
            e.filename = upload.original_name
            raise

        await self.scratch.delete(upload.temporary_path)

        duration = time.time() - start_time
        metrics.transform_duration_seconds.observe(duration)
        logger.info(
            "file_transformed",
            filename=upload.original_name,
            primary=primary_path.name,
            width=rendered.width,
            height=rendered.height,
            duration_seconds=round(duration, 3),
        )

        return TransformedAsset(
            primary_path=primary_path,
            thumbnail_path=thumbnail_path,
            width_px=rendered.width,
            height_px=rendered.height,
        )

    async def transform_batch(self, batch: list[UploadedFile]) -> list[TransformedAsset]:
        """
        Transform every file concurrently, in submission order.

        The first failure cancels every file still pending and propagates.
        Derivatives already written for other files are kept.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(upload: UploadedFile) -> TransformedAsset:
            async with semaphore:
                return await self.transform(upload)

        tasks = [asyncio.create_task(bounded(upload)) for upload in batch]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
