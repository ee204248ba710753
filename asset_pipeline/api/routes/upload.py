"""Product image upload endpoint."""

import time
import uuid

import structlog
from fastapi import APIRouter, Depends, Request, UploadFile
from starlette.datastructures import FormData
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect

from asset_pipeline.api.dependencies import get_pipeline
from asset_pipeline.config import settings
from asset_pipeline.exceptions import MalformedBodyError, StorageUnavailableError, TooManyFilesError
from asset_pipeline.models.responses import AssetResult, ServerErrorResponse, ValidationFailureResponse
from asset_pipeline.services.pipeline import AssetIngestionPipeline

router = APIRouter()
logger = structlog.get_logger()

UPLOAD_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "properties": {
                    settings.upload_field_name: {
                        "type": "array",
                        "items": {"type": "string", "format": "binary"},
                        "description": "Image files, repeatable",
                    }
                },
                "required": [settings.upload_field_name],
            }
        }
    },
}


async def read_upload_form(request: Request, max_files: int) -> FormData:
    """
    Parse the multipart body, stopping at ``max_files`` file parts.

    Raises:
        TooManyFilesError: If the body carries more than ``max_files`` files
        MalformedBodyError: If the body is not valid multipart data
        StorageUnavailableError: If the client disconnects mid-body
    """
    try:
        return await request.form(max_files=max_files)
    except ClientDisconnect as e:
        logger.warning("client_disconnected", path=request.url.path)
        raise StorageUnavailableError("Client disconnected during upload") from e
    except (MultiPartException, StarletteHTTPException) as e:
        # Starlette re-raises parser errors as HTTPException inside an app
        detail = e.message if isinstance(e, MultiPartException) else str(e.detail)
        if detail.startswith("Too many files"):
            raise TooManyFilesError(None, max_files) from e
        raise MalformedBodyError(detail) from e


def collect_files(form: FormData, field_name: str) -> list[UploadFile]:
    """
    File parts submitted under ``field_name``, in submission order.

    Raises:
        MalformedBodyError: If the field carries plain text values
    """
    parts = form.getlist(field_name)
    if any(isinstance(part, str) for part in parts):
        raise MalformedBodyError(f"field '{field_name}' must carry files")
    return list(parts)  # type: ignore[arg-type]


@router.post(
    "/images",
    response_model=list[AssetResult],
    response_model_by_alias=True,
    summary="Upload product images",
    description=(
        f"Upload 1-{settings.max_files_per_request} images (JPEG, PNG, WebP, GIF) under the "
        f"'{settings.upload_field_name}' field. Each file must be at most "
        f"{settings.max_file_size_mb}MB and {settings.max_image_dimension}px per side. "
        "If any file is rejected, none are kept."
    ),
    responses={
        400: {"model": ValidationFailureResponse, "description": "One or more files rejected"},
        500: {"model": ServerErrorResponse, "description": "Storage or image processing failure"},
    },
    openapi_extra={"requestBody": UPLOAD_REQUEST_BODY},
)
async def upload_images(
    request: Request,
    pipeline: AssetIngestionPipeline = Depends(get_pipeline),
) -> list[AssetResult]:
    """
    Validate and ingest a batch of product images.

    Returns:
        One result per file, in submission order

    Raises:
        IntakeError, BatchRejectedError, TransformError: Rendered by the
            pipeline exception handlers
    """
    correlation_id = str(uuid.uuid4())
    start_time = time.time()

    form = await read_upload_form(request, settings.max_files_per_request)
    try:
        files = collect_files(form, settings.upload_field_name)

        logger.info(
            "upload_request_started",
            correlation_id=correlation_id,
            files=[f.filename for f in files],
        )

        results = await pipeline.ingest(files, settings.upload_field_name)
    finally:
        await form.close()

    logger.info(
        "upload_request_completed",
        correlation_id=correlation_id,
        files=len(results),
        duration_seconds=round(time.time() - start_time, 3),
    )
    return results
