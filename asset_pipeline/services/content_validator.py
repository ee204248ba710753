"""Content validation from decoded image bytes."""

import asyncio
from pathlib import Path

import magic
import structlog
from PIL import Image, UnidentifiedImageError

from asset_pipeline.models.upload import DecodedImageMetadata, ImageFormat, MediaType, UploadedFile
from asset_pipeline.models.validation import RejectionReason, ValidationOutcome

logger = structlog.get_logger()

ALLOWED_DECODED_FORMATS = frozenset(
    {ImageFormat.JPEG, ImageFormat.PNG, ImageFormat.WEBP, ImageFormat.GIF}
)

# Pillow embeds the file path in its own message
UNRECOGNIZED = "unrecognized image data"


class ImageDecodeError(Exception):
    """Raised when file bytes cannot be decoded as an image."""

    pass


def sniff_mime_type(file_path: Path) -> str:
    """Best-effort libmagic guess of a file's content type."""
    try:
        with open(file_path, "rb") as f:
            header = f.read(2048)
        return magic.from_buffer(header, mime=True)
    except Exception as e:
        logger.debug("magic_detection_failed", path=str(file_path), error=str(e))
        return "unknown"


def decode_metadata(file_path: Path) -> DecodedImageMetadata:
    """
    Decode image metadata from the actual file bytes.

    Args:
        file_path: Path to the image file

    Returns:
        DecodedImageMetadata read from the file content

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
        Image.DecompressionBombError: If the pixel count is absurdly large
    """
    try:
        # verify() leaves the image unusable, so metadata comes from a second open
        with Image.open(file_path) as image:
            image.verify()
        with Image.open(file_path) as image:
            return DecodedImageMetadata(
                true_format=ImageFormat.from_pillow(image.format),
                width_px=image.width,
                height_px=image.height,
                has_alpha_channel=image.has_transparency_data,
                frame_count=getattr(image, "n_frames", 1),
            )
    except Image.DecompressionBombError:
        raise
    except UnidentifiedImageError as e:
        raise ImageDecodeError(UNRECOGNIZED) from e
    except Exception as e:
        raise ImageDecodeError(str(e)) from e


def decode_pixels(file_path: Path) -> None:
    """
    Decode every pixel of the first frame.

    Header reads succeed on truncated files; only a full load finds them.

    Raises:
        ImageDecodeError: If the pixel data cannot be decoded
    """
    try:
        with Image.open(file_path) as image:
            image.seek(0)
            image.load()
    except UnidentifiedImageError as e:
        raise ImageDecodeError(UNRECOGNIZED) from e
    except Exception as e:
        raise ImageDecodeError(str(e)) from e


class ContentValidator:
    """Applies content-plausibility rules to decoded metadata."""

    def __init__(self, max_dimension: int = 4096, enforce_declared_type_match: bool = True):
        self.max_dimension = max_dimension
        self.enforce_declared_type_match = enforce_declared_type_match

    async def validate(self, upload: UploadedFile) -> ValidationOutcome:
        """
        Decode the file and apply content rules.

        The decoded metadata is attached to ``upload.metadata`` when decoding
        succeeds. Pixels are only fully decoded once every header rule has
        passed. Decode failures become rejections, never exceptions.
        """
        try:
            metadata = await asyncio.to_thread(decode_metadata, upload.temporary_path)
        except Image.DecompressionBombError as e:
            return self._reject(upload, RejectionReason.DIMENSION_EXCEEDED, str(e))
        except ImageDecodeError as e:
            sniffed = await asyncio.to_thread(sniff_mime_type, upload.temporary_path)
            return self._reject(
                upload,
                RejectionReason.FORMAT_NOT_DECODABLE,
                f"{e}; content looks like {sniffed}",
            )

        upload.metadata = metadata
        outcome = self.evaluate(metadata, upload.declared_media_type)
        if outcome.accepted:
            try:
                await asyncio.to_thread(decode_pixels, upload.temporary_path)
            except ImageDecodeError as e:
                return self._reject(upload, RejectionReason.FORMAT_NOT_DECODABLE, str(e))
        if outcome.rejected:
            logger.info(
                "content_rejected",
                filename=upload.original_name,
                reason=outcome.reason.value if outcome.reason else None,
                true_format=metadata.true_format.value,
                width=metadata.width_px,
                height=metadata.height_px,
            )
        return outcome

    def evaluate(self, metadata: DecodedImageMetadata, declared_media_type: str) -> ValidationOutcome:
        """Apply the content rules in order to already-decoded metadata."""
        if metadata.width_px > self.max_dimension or metadata.height_px > self.max_dimension:
            return ValidationOutcome.reject(
                RejectionReason.DIMENSION_EXCEEDED,
                f"{metadata.width_px}x{metadata.height_px}, limit {self.max_dimension}px",
            )

        if metadata.true_format not in ALLOWED_DECODED_FORMATS:
            return ValidationOutcome.reject(
                RejectionReason.DISALLOWED_DECODED_FORMAT,
                "decoded format is not JPEG, PNG, WebP or GIF",
            )

        if self.enforce_declared_type_match and metadata.true_format.media_type != _as_media_type(
            declared_media_type
        ):
            return ValidationOutcome.reject(
                RejectionReason.DECLARED_TYPE_MISMATCH,
                f"declared {declared_media_type}, decoded {metadata.true_format.value}",
            )

        if metadata.true_format == ImageFormat.JPEG and metadata.has_alpha_channel:
            return ValidationOutcome.reject(RejectionReason.ALPHA_IN_JPEG_ANOMALY)

        return ValidationOutcome.accept()

    def _reject(self, upload: UploadedFile, reason: RejectionReason, detail: str) -> ValidationOutcome:
        logger.info("content_rejected", filename=upload.original_name, reason=reason.value, detail=detail)
        return ValidationOutcome.reject(reason, detail)


def _as_media_type(value: str) -> MediaType | None:
    try:
        return MediaType(value)
    except ValueError:
        return None
