"""Intake stage: bounds-check multipart parts and write them to scratch storage."""

import asyncio

import structlog
from fastapi import UploadFile

from asset_pipeline.exceptions import StorageUnavailableError
from asset_pipeline.models.upload import UploadedFile
from asset_pipeline.services.storage import ScratchStorage
from asset_pipeline.utils import metrics
from asset_pipeline.utils.security import generate_temp_filename
from asset_pipeline.utils.validators import validate_file_count, validate_file_sizes

logger = structlog.get_logger()


class IntakeStage:
    """Turns multipart parts into ``UploadedFile`` records on scratch storage."""

    def __init__(
        self,
        scratch: ScratchStorage,
        max_files: int = 10,
        max_file_size_bytes: int = 10 * 1024 * 1024,
    ):
        self.scratch = scratch
        self.max_files = max_files
        self.max_file_size_bytes = max_file_size_bytes

    async def receive(self, files: list[UploadFile], field_name: str = "images") -> list[UploadedFile]:
        """
        Check limits, then write every part to scratch storage.

        Count and size limits are checked for all parts before anything is
        written, so a refused request leaves nothing behind.

        Args:
            files: Parts submitted under ``field_name``
            field_name: Form field the parts arrived under

        Returns:
            One UploadedFile per part, in submission order

        Raises:
            NoFilesError: If no parts were submitted
            TooManyFilesError: If more than ``max_files`` parts were submitted
            FileTooLargeError: If any part exceeds ``max_file_size_bytes``
            StorageUnavailableError: If scratch storage cannot be prepared or
                written; parts already written for this request are deleted
        """
        validate_file_count(len(files), self.max_files, field_name)
        sizes = validate_file_sizes(files, self.max_file_size_bytes)

        self.scratch.ensure_dir()

        uploads: list[UploadedFile] = []
        try:
            for file, file_size in zip(files, sizes):
                filename = generate_temp_filename(field_name, file.filename)
                temp_path = await self.scratch.write(file, filename)
                uploads.append(
                    UploadedFile(
                        field_name=field_name,
                        original_name=file.filename or "unknown",
                        declared_media_type=(file.content_type or "").lower(),
                        temporary_path=temp_path,
                        size_bytes=file_size,
                    )
                )
                metrics.files_received_total.inc()
                metrics.upload_file_size_bytes.observe(file_size)
        except (StorageUnavailableError, asyncio.CancelledError):
            await self._discard(uploads)
            raise
        except Exception as e:
            await self._discard(uploads)
            raise StorageUnavailableError(f"Upload interrupted: {e}") from e

        logger.info(
            "batch_received",
            field_name=field_name,
            files=[u.original_name for u in uploads],
            total_bytes=sum(sizes),
        )
        return uploads

    async def _discard(self, uploads: list[UploadedFile]) -> None:
        for upload in uploads:
            await self.scratch.delete(upload.temporary_path)
        if uploads:
            logger.warning("partial_intake_discarded", files=len(uploads))
