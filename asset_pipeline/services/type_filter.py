"""Declared media type and extension cross-check."""

import structlog

from asset_pipeline.models.upload import MediaType, UploadedFile
from asset_pipeline.models.validation import RejectionReason, ValidationOutcome

logger = structlog.get_logger()

DEFAULT_ALLOWED_MEDIA_TYPES = tuple(media_type.value for media_type in MediaType)


class TypeFilter:
    """Rejects files by client-declared type before any decoding happens."""

    def __init__(self, allowed_media_types: list[str] | tuple[str, ...] = DEFAULT_ALLOWED_MEDIA_TYPES):
        # Only types with registered extensions can ever pass the extension check
        self.allowed = {
            MediaType(value) for value in allowed_media_types if value in DEFAULT_ALLOWED_MEDIA_TYPES
        }

    def check(self, upload: UploadedFile) -> ValidationOutcome | None:
        """
        Cross-check declared media type against the allow-list and extension.

        Returns:
            A rejection outcome, or None if the file may proceed to decoding
        """
        declared = upload.declared_media_type
        try:
            media_type = MediaType(declared)
        except ValueError:
            media_type = None

        if media_type is None or media_type not in self.allowed:
            logger.info("type_filter_rejected", filename=upload.original_name, declared=declared)
            return ValidationOutcome.reject(
                RejectionReason.UNSUPPORTED_MEDIA_TYPE, f"declared type '{declared or 'none'}'"
            )

        if upload.extension not in media_type.extensions:
            logger.info(
                "type_filter_rejected",
                filename=upload.original_name,
                declared=declared,
                extension=upload.extension,
            )
            return ValidationOutcome.reject(
                RejectionReason.EXTENSION_MISMATCH,
                f"'{upload.extension or 'none'}' is not registered for {declared}",
            )

        return None
