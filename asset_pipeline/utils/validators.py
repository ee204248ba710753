"File validation utilities for count and size checks at intake."

from typing import IO

import structlog
from fastapi import UploadFile

from asset_pipeline.exceptions import FileTooLargeError, NoFilesError, TooManyFilesError

logger = structlog.get_logger()


def measure_upload_size(file: IO[bytes]) -> int:
    """
    Size of a spooled upload without reading it into memory.

    Args:
        file: Underlying file object of the upload

    Returns:
        File size in bytes; the file pointer is reset to the beginning
    """
    file.seek(0, 2)  # Seek to end
    file_size = file.tell()
    file.seek(0)  # Reset to beginning
    return file_size


def validate_file_count(count: int, limit: int, field_name: str) -> None:
    """
    Validate the number of parts in a request.

    Raises:
        NoFilesError: If no parts were submitted
        TooManyFilesError: If count exceeds the limit
    """
    if count == 0:
        raise NoFilesError(field_name)
    if count > limit:
        raise TooManyFilesError(count, limit)


def validate_file_sizes(files: list[UploadFile], limit_bytes: int) -> list[int]:
    """
    Measure every part and fail on the first oversized one.

    Returns:
        Sizes in bytes, in submission order

    Raises:
        FileTooLargeError: If any file exceeds the limit
    """
    sizes = []
    for file in files:
        file_size = measure_upload_size(file.file)
        if file_size > limit_bytes:
            logger.warning(
                "file_too_large",
                filename=file.filename,
                size=file_size,
                limit=limit_bytes,
            )
            raise FileTooLargeError(file.filename or "unknown", file_size, limit_bytes)
        sizes.append(file_size)
    return sizes
