"""Integration tests for the intake stage with actual file I/O.

Tests limit enforcement before any write, scratch naming, permissions and
discarding partial writes.
"""

import asyncio
import os
import re
from unittest.mock import patch

import pytest

from asset_pipeline.exceptions import (
    FileTooLargeError,
    NoFilesError,
    StorageUnavailableError,
    TooManyFilesError,
)
from asset_pipeline.services.intake import IntakeStage
from asset_pipeline.services.storage import ScratchStorage


@pytest.fixture
def intake(temp_scratch_dir):
    return IntakeStage(ScratchStorage(temp_scratch_dir), max_files=10, max_file_size_bytes=1024 * 1024)


@pytest.mark.asyncio
async def test_receive_writes_each_part(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that parts land in the scratch dir with content preserved."""
    uploads = await intake.receive(
        [create_upload_file(sample_jpeg_bytes, "front.jpg"), create_upload_file(sample_jpeg_bytes, "back.JPEG")]
    )

    assert len(uploads) == 2
    for upload in uploads:
        assert upload.temporary_path.parent == temp_scratch_dir
        assert upload.temporary_path.read_bytes() == sample_jpeg_bytes
        assert upload.size_bytes == len(sample_jpeg_bytes)
        assert upload.outcome is None
    assert uploads[0].original_name == "front.jpg"
    assert uploads[1].temporary_path.suffix == ".jpeg"


@pytest.mark.asyncio
async def test_receive_records_untrusted_client_claims(intake, create_upload_file, sample_jpeg_bytes):
    """Test that declared type and field name are recorded as sent."""
    uploads = await intake.receive(
        [create_upload_file(sample_jpeg_bytes, "photo.png", "IMAGE/PNG")], field_name="images"
    )

    assert uploads[0].declared_media_type == "image/png"
    assert uploads[0].field_name == "images"


@pytest.mark.asyncio
async def test_scratch_filename_format(intake, create_upload_file, sample_jpeg_bytes):
    """Test the <field>-<timestamp>-<random><ext> naming scheme."""
    uploads = await intake.receive([create_upload_file(sample_jpeg_bytes, "Photo.JPG")])

    assert re.fullmatch(r"images-\d{13}-\d{9}\.jpg", uploads[0].temporary_path.name)


@pytest.mark.asyncio
async def test_scratch_permissions(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that the scratch dir is 0700 and files are 0600."""
    uploads = await intake.receive([create_upload_file(sample_jpeg_bytes)])

    assert os.stat(temp_scratch_dir).st_mode & 0o777 == 0o700
    assert os.stat(uploads[0].temporary_path).st_mode & 0o777 == 0o600


@pytest.mark.asyncio
async def test_unique_names_for_identical_parts(intake, create_upload_file, sample_jpeg_bytes):
    uploads = await intake.receive([create_upload_file(sample_jpeg_bytes, "same.jpg") for _ in range(10)])

    assert len({u.temporary_path for u in uploads}) == 10


@pytest.mark.asyncio
async def test_too_many_files_writes_nothing(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that an 11th part fails the request before any write."""
    files = [create_upload_file(sample_jpeg_bytes, f"{i}.jpg") for i in range(11)]

    with pytest.raises(TooManyFilesError):
        await intake.receive(files)

    assert not temp_scratch_dir.exists() or not any(temp_scratch_dir.iterdir())


@pytest.mark.asyncio
async def test_oversized_file_writes_nothing(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that one oversized part fails the request with nothing written."""
    files = [
        create_upload_file(sample_jpeg_bytes, "ok.jpg"),
        create_upload_file(b"\xff\xd8\xff\xe0" + b"\x00" * (1024 * 1024), "huge.jpg"),
    ]

    with pytest.raises(FileTooLargeError) as exc_info:
        await intake.receive(files)

    assert exc_info.value.filename == "huge.jpg"
    assert not temp_scratch_dir.exists() or not any(temp_scratch_dir.iterdir())


@pytest.mark.asyncio
async def test_file_at_size_limit_is_accepted(intake, create_upload_file):
    uploads = await intake.receive([create_upload_file(b"\x00" * (1024 * 1024), "edge.jpg")])

    assert uploads[0].size_bytes == 1024 * 1024


@pytest.mark.asyncio
async def test_no_files(intake):
    with pytest.raises(NoFilesError):
        await intake.receive([])


@pytest.mark.asyncio
async def test_scratch_dir_unavailable(tmp_path, create_upload_file, sample_jpeg_bytes):
    """Test that a scratch root that cannot be created raises StorageUnavailableError."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    intake = IntakeStage(ScratchStorage(blocker / "scratch"))

    with pytest.raises(StorageUnavailableError):
        await intake.receive([create_upload_file(sample_jpeg_bytes)])


@pytest.mark.asyncio
async def test_failed_write_discards_earlier_parts(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that a failure mid-batch leaves no scratch file behind."""
    original_write = ScratchStorage.write
    calls = {"n": 0}

    async def flaky_write(self, file, filename):
        calls["n"] += 1
        if calls["n"] == 3:
            raise StorageUnavailableError("disk full")
        return await original_write(self, file, filename)

    files = [create_upload_file(sample_jpeg_bytes, f"{i}.jpg") for i in range(4)]
    with patch.object(ScratchStorage, "write", flaky_write):
        with pytest.raises(StorageUnavailableError):
            await intake.receive(files)

    assert list(temp_scratch_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_client_disconnect_discards_parts(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that an interrupted body read is reported as unavailable storage."""
    files = [create_upload_file(sample_jpeg_bytes, "a.jpg"), create_upload_file(sample_jpeg_bytes, "b.jpg")]

    async def broken_read(size: int = -1) -> bytes:
        raise ConnectionResetError("client went away")

    files[1].read = broken_read  # type: ignore[method-assign]

    with pytest.raises(StorageUnavailableError):
        await intake.receive(files)

    assert list(temp_scratch_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_cancellation_discards_parts(intake, temp_scratch_dir, create_upload_file, sample_jpeg_bytes):
    """Test that a cancelled request does not orphan scratch files."""
    files = [create_upload_file(sample_jpeg_bytes, "a.jpg"), create_upload_file(sample_jpeg_bytes, "b.jpg")]

    async def cancelled_read(size: int = -1) -> bytes:
        raise asyncio.CancelledError()

    files[1].read = cancelled_read  # type: ignore[method-assign]

    with pytest.raises(asyncio.CancelledError):
        await intake.receive(files)

    assert list(temp_scratch_dir.iterdir()) == []
