"""Exceptions raised by the ingestion pipeline.

Intake and batch-rejection errors are the client's fault and surface as
HTTP 400; storage and transform errors surface as HTTP 500.
"""

from asset_pipeline.models.validation import ValidationOutcome


class PipelineError(Exception):
    """Base exception for ingestion pipeline errors."""

    status_code = 500

    def __init__(self, message: str, error_code: str):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class IntakeError(PipelineError):
    """Raised when the multipart request is refused before validation."""

    status_code = 400


class TooManyFilesError(IntakeError):
    """``count`` is None when parsing stopped at the limit before counting every part."""

    def __init__(self, count: int | None, limit: int):
        submitted = f"{count}" if count is not None else f"more than {limit}"
        super().__init__(
            f"Too many files: {submitted} submitted, maximum is {limit}",
            "too_many_files",
        )
        self.count = count
        self.limit = limit


class FileTooLargeError(IntakeError):
    def __init__(self, filename: str, size_bytes: int, limit_bytes: int):
        super().__init__(
            f"{filename}: file size {size_bytes} bytes exceeds maximum {limit_bytes} bytes",
            "file_too_large",
        )
        self.filename = filename
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class NoFilesError(IntakeError):
    def __init__(self, field_name: str):
        super().__init__(f"No files submitted under field '{field_name}'", "no_files")


class MalformedBodyError(IntakeError):
    def __init__(self, detail: str):
        super().__init__(f"Malformed multipart body: {detail}", "malformed_body")


class StorageUnavailableError(IntakeError):
    """Scratch storage could not be prepared or written."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message, "storage_unavailable")


class BatchRejectedError(PipelineError):
    """At least one file in the batch failed validation.

    ``errors`` holds one ``"<filename>: <rule>"`` line per rejected file.
    ``outcomes`` pairs every original filename with its outcome, accepted
    files included.
    """

    status_code = 400

    def __init__(self, errors: list[str], outcomes: list[tuple[str, ValidationOutcome]]):
        super().__init__("File validation failed", "validation_failed")
        self.errors = errors
        self.outcomes = outcomes


class TransformError(PipelineError):
    """Raised when an accepted file cannot be turned into derivatives."""

    def __init__(self, message: str, error_code: str, filename: str | None = None):
        super().__init__(message, error_code)
        self.filename = filename


class DecodeFailureError(TransformError):
    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, "decode_failure", filename)


class EncodeFailureError(TransformError):
    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, "encode_failure", filename)


class StorageWriteFailureError(TransformError):
    def __init__(self, message: str, filename: str | None = None):
        super().__init__(message, "storage_write_failure", filename)
