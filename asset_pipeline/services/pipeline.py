"""Ingestion pipeline: intake, validation, batch gate, transform, finalize."""

import asyncio

import structlog
from fastapi import UploadFile

from asset_pipeline.config import Settings
from asset_pipeline.exceptions import BatchRejectedError, IntakeError
from asset_pipeline.models.responses import AssetResult
from asset_pipeline.models.upload import UploadedFile
from asset_pipeline.models.validation import ValidationOutcome
from asset_pipeline.services.cleanup import CleanupCoordinator
from asset_pipeline.services.content_validator import ContentValidator
from asset_pipeline.services.finalizer import finalize_batch
from asset_pipeline.services.intake import IntakeStage
from asset_pipeline.services.scanner import AntivirusScanner, PassthroughScanner, scan_file
from asset_pipeline.services.storage import AssetStorage, ScratchStorage
from asset_pipeline.services.transformer import RenderSettings, Transformer
from asset_pipeline.services.type_filter import TypeFilter
from asset_pipeline.utils import metrics

logger = structlog.get_logger()


class AssetIngestionPipeline:
    """Runs one upload batch end to end.

    Per-file validation runs as independent tasks joined at the cleanup
    coordinator. Whatever happens, no scratch file of the batch outlives
    ``ingest``.
    """

    def __init__(
        self,
        intake: IntakeStage,
        type_filter: TypeFilter,
        content_validator: ContentValidator,
        scanner: AntivirusScanner,
        coordinator: CleanupCoordinator,
        transformer: Transformer,
        url_prefix: str = "/uploads/products/",
    ):
        self.intake = intake
        self.type_filter = type_filter
        self.content_validator = content_validator
        self.scanner = scanner
        self.coordinator = coordinator
        self.transformer = transformer
        self.url_prefix = url_prefix

    @classmethod
    def from_settings(cls, settings: Settings, scanner: AntivirusScanner | None = None) -> "AssetIngestionPipeline":
        """Build a pipeline rooted at the configured scratch and asset dirs."""
        scratch = ScratchStorage(settings.scratch_path)
        assets = AssetStorage(settings.asset_path)
        return cls(
            intake=IntakeStage(
                scratch,
                max_files=settings.max_files_per_request,
                max_file_size_bytes=settings.max_file_size_bytes,
            ),
            type_filter=TypeFilter(settings.allowed_media_types_list),
            content_validator=ContentValidator(
                max_dimension=settings.max_image_dimension,
                enforce_declared_type_match=settings.enforce_declared_type_match,
            ),
            scanner=scanner or PassthroughScanner(),
            coordinator=CleanupCoordinator(scratch),
            transformer=Transformer(
                scratch,
                assets,
                render=RenderSettings(
                    primary_max_dimension=settings.primary_max_dimension,
                    primary_quality=settings.primary_quality,
                    thumbnail_size=settings.thumbnail_size,
                    thumbnail_quality=settings.thumbnail_quality,
                    webp_method=settings.webp_method,
                ),
                concurrency=settings.transform_concurrency,
            ),
            url_prefix=settings.asset_url_prefix,
        )

    async def validate(self, upload: UploadedFile) -> ValidationOutcome:
        """
        Run every per-file check and annotate the file with the outcome.

        Checks stop at the first rejection: type filter, then content rules,
        then the antivirus scan.
        """
        outcome = self.type_filter.check(upload)
        if outcome is None:
            outcome = await self.content_validator.validate(upload)
            if outcome.accepted:
                outcome = await scan_file(self.scanner, upload.temporary_path, upload.original_name)
                outcome = outcome or ValidationOutcome.accept()

        upload.annotate(outcome)
        return outcome

    async def ingest(self, files: list[UploadFile], field_name: str = "images") -> list[AssetResult]:
        """
        Ingest one multipart batch.

        Returns:
            One AssetResult per file, in submission order

        Raises:
            IntakeError: If the request is refused at intake
            BatchRejectedError: If any file failed validation
            TransformError: If producing derivatives failed
        """
        try:
            batch = await self.intake.receive(files, field_name)
        except IntakeError:
            metrics.upload_batches_total.labels(outcome="intake_refused").inc()
            raise

        try:
            # Every validation finishes before the first error surfaces, so the
            # purge below never races a decode of the same scratch file
            results = await asyncio.gather(*(self.validate(upload) for upload in batch), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            accepted = await self.coordinator.settle(batch)
            assets = await self.transformer.transform_batch(accepted)
        except BatchRejectedError:
            metrics.upload_batches_total.labels(outcome="rejected").inc()
            raise
        except BaseException as e:
            metrics.upload_batches_total.labels(outcome="failed").inc()
            logger.error(
                "batch_failed",
                files=[u.original_name for u in batch],
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            # Files already promoted no longer exist in scratch; this only
            # catches leftovers from rejections and aborted transforms.
            await self.coordinator.purge(batch)

        metrics.upload_batches_total.labels(outcome="accepted").inc()
        return finalize_batch(batch, assets, self.url_prefix)
