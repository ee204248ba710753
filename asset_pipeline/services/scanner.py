"""Antivirus scanner interface."""

from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog

from asset_pipeline.models.validation import RejectionReason, ValidationOutcome

logger = structlog.get_logger()


class ScanResult(str, Enum):
    CLEAN = "clean"
    INFECTED = "infected"
    ERROR = "error"


class AntivirusScanner(Protocol):
    """Anything that can scan a file on scratch storage."""

    async def scan(self, file_path: Path) -> ScanResult: ...


class PassthroughScanner:
    """Reports every file clean. Stands in until a real engine is wired up."""

    async def scan(self, file_path: Path) -> ScanResult:
        return ScanResult.CLEAN


async def scan_file(scanner: AntivirusScanner, file_path: Path, filename: str) -> ValidationOutcome | None:
    """
    Scan a file and translate the result into a validation outcome.

    Returns:
        A rejection outcome, or None if the file is clean
    """
    try:
        result = await scanner.scan(file_path)
    except Exception as e:
        logger.error("antivirus_scan_failed", filename=filename, error=str(e))
        return ValidationOutcome.reject(RejectionReason.SCAN_FAILED, str(e))

    if result == ScanResult.CLEAN:
        return None
    if result == ScanResult.INFECTED:
        logger.warning("antivirus_infected", filename=filename)
        return ValidationOutcome.reject(RejectionReason.INFECTED)

    logger.error("antivirus_scan_error", filename=filename)
    return ValidationOutcome.reject(RejectionReason.SCAN_FAILED)
