"""Unit tests for the antivirus scanner interface."""

from pathlib import Path

import pytest

from asset_pipeline.models.validation import RejectionReason
from asset_pipeline.services.scanner import PassthroughScanner, ScanResult, scan_file


class FixedScanner:
    def __init__(self, result: ScanResult):
        self.result = result
        self.scanned: list[Path] = []

    async def scan(self, file_path: Path) -> ScanResult:
        self.scanned.append(file_path)
        return self.result


class BrokenScanner:
    async def scan(self, file_path: Path) -> ScanResult:
        raise ConnectionError("scanner daemon unreachable")


@pytest.mark.asyncio
async def test_passthrough_scanner_reports_clean(tmp_path):
    """Test that the default scanner passes every file."""
    assert await PassthroughScanner().scan(tmp_path / "any.jpg") == ScanResult.CLEAN


@pytest.mark.asyncio
async def test_clean_result_is_not_a_rejection(tmp_path):
    scanner = FixedScanner(ScanResult.CLEAN)

    assert await scan_file(scanner, tmp_path / "a.jpg", "a.jpg") is None
    assert scanner.scanned == [tmp_path / "a.jpg"]


@pytest.mark.asyncio
async def test_infected_result_rejects(tmp_path):
    outcome = await scan_file(FixedScanner(ScanResult.INFECTED), tmp_path / "a.jpg", "a.jpg")

    assert outcome is not None
    assert outcome.reason == RejectionReason.INFECTED


@pytest.mark.asyncio
async def test_error_result_rejects(tmp_path):
    outcome = await scan_file(FixedScanner(ScanResult.ERROR), tmp_path / "a.jpg", "a.jpg")

    assert outcome is not None
    assert outcome.reason == RejectionReason.SCAN_FAILED


@pytest.mark.asyncio
async def test_scanner_exception_becomes_rejection(tmp_path):
    """Test that a crashing scanner rejects the file instead of failing the request."""
    outcome = await scan_file(BrokenScanner(), tmp_path / "a.jpg", "a.jpg")

    assert outcome is not None
    assert outcome.reason == RejectionReason.SCAN_FAILED
    assert "unreachable" in (outcome.detail or "")
