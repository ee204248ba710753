"""Exception handlers to convert exceptions to JSON error responses."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from asset_pipeline.exceptions import BatchRejectedError, PipelineError, StorageUnavailableError

logger = structlog.get_logger()


def failure_response(status_code: int, message: str, errors: list[str]) -> JSONResponse:
    """400-style body: every problem listed."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors},
    )


def server_error_response(message: str, error: str) -> JSONResponse:
    """500 body with a single error string."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": message, "error": error},
    )


async def pipeline_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle ingestion pipeline errors (400 for client faults, 500 otherwise)."""
    if not isinstance(exc, PipelineError):
        return await generic_exception_handler(request, exc)

    if isinstance(exc, BatchRejectedError):
        return failure_response(exc.status_code, exc.message, exc.errors)

    if exc.status_code < 500:
        logger.warning("upload_refused", error_code=exc.error_code, error=exc.message)
        return failure_response(exc.status_code, "Upload rejected", [exc.message])

    logger.error("upload_failed", error_code=exc.error_code, error=exc.message, path=request.url.path)
    message = "Upload storage unavailable" if isinstance(exc, StorageUnavailableError) else "Image processing failed"
    filename = getattr(exc, "filename", None)
    return server_error_response(message, f"{filename}: {exc.message}" if filename else exc.message)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle HTTP exceptions from FastAPI and Starlette routing (preserve status code)."""
    # Type guard instead of assert (asserts are disabled with -O flag)
    if not isinstance(exc, HTTPException):
        return await generic_exception_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle request validation errors (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    logger.warning("validation_error", errors=errors)

    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}" for error in errors
    ]
    return failure_response(status.HTTP_400_BAD_REQUEST, "Invalid request data", messages)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions (500)."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return server_error_response("Internal server error", str(exc) or type(exc).__name__)


def add_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers to the FastAPI app."""
    app.add_exception_handler(PipelineError, pipeline_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
