"""Batch cleanup: the all-or-nothing gate and the scratch reconciliation sweep."""

import time
from pathlib import Path

import structlog

from asset_pipeline.exceptions import BatchRejectedError
from asset_pipeline.models.upload import UploadedFile
from asset_pipeline.services.storage import ScratchStorage
from asset_pipeline.utils import metrics

logger = structlog.get_logger()


class CleanupCoordinator:
    """Barrier between validation and transformation.

    A batch proceeds only if every file was accepted. Otherwise the scratch
    copies of every file in the batch are deleted, accepted ones included.
    """

    def __init__(self, scratch: ScratchStorage):
        self.scratch = scratch

    async def settle(self, batch: list[UploadedFile]) -> list[UploadedFile]:
        """
        Decide the fate of a fully validated batch.

        Args:
            batch: Files that all carry a validation outcome

        Returns:
            The batch, untouched, if every file was accepted

        Raises:
            RuntimeError: If a file has no outcome yet
            BatchRejectedError: If any file was rejected; every scratch file
                of the batch has been purged when this is raised
        """
        pending = [upload.original_name for upload in batch if upload.outcome is None]
        if pending:
            raise RuntimeError(f"Batch settled before validation finished: {pending}")

        rejected = [upload for upload in batch if upload.is_rejected]
        if not rejected:
            logger.info("batch_accepted", files=len(batch))
            return batch

        errors = []
        for upload in rejected:
            outcome = upload.outcome
            assert outcome is not None
            if outcome.reason is not None:
                metrics.files_rejected_total.labels(reason=outcome.reason.value).inc()
            errors.append(f"{upload.original_name}: {outcome.describe()}")

        await self.purge(batch)
        logger.warning("batch_rejected", files=len(batch), rejected=len(rejected), errors=errors)

        raise BatchRejectedError(
            errors=errors,
            outcomes=[(upload.original_name, upload.outcome) for upload in batch if upload.outcome],
        )

    async def purge(self, batch: list[UploadedFile]) -> int:
        """
        Delete the scratch copies of a batch, best effort.

        Returns:
            Number of files that could not be deleted
        """
        failures = 0
        for upload in batch:
            if not await self.scratch.delete(upload.temporary_path):
                failures += 1
        if failures:
            logger.warning("batch_purge_incomplete", files=len(batch), failures=failures)
        else:
            logger.debug("batch_purged", files=len(batch))
        return failures


class ScratchSweeper:
    """Deletes scratch files abandoned by crashed or killed requests."""

    def __init__(self, scratch_dir: Path, expiration_hours: int = 24):
        self.scratch_dir = Path(scratch_dir)
        self.expiration_seconds = expiration_hours * 3600

    async def sweep_expired_files(self) -> int:
        """
        Delete scratch files older than the expiration time.

        Returns:
            Number of deleted files
        """
        if not self.scratch_dir.is_dir():
            return 0

        current_time = time.time()
        deleted_count = 0

        for file_path in self.scratch_dir.glob("*"):
            if file_path.is_file():
                age = current_time - file_path.stat().st_mtime
                if age > self.expiration_seconds:
                    try:
                        file_path.unlink()
                        deleted_count += 1
                    except Exception as e:
                        logger.error("sweep_failed", path=str(file_path), error=str(e))

        if deleted_count > 0:
            logger.info("sweep_completed", deleted_files=deleted_count)
        return deleted_count
