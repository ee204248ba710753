"""Scratch and asset storage on the local filesystem."""

import asyncio
import os
from pathlib import Path

import aiofiles
import structlog
from fastapi import UploadFile

from asset_pipeline.exceptions import StorageUnavailableError, StorageWriteFailureError
from asset_pipeline.utils import metrics

logger = structlog.get_logger()

CHUNK_SIZE = 8192


class ScratchStorage:
    """Transient storage for files still being validated or transformed."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_dir(self) -> None:
        """
        Create the scratch directory if absent.

        Raises:
            StorageUnavailableError: If the directory cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            os.chmod(self.root, 0o700)
        except OSError as e:
            logger.error("scratch_dir_unavailable", path=str(self.root), error=str(e))
            raise StorageUnavailableError(f"Scratch storage unavailable: {e}") from e

    async def write(self, file: UploadFile, filename: str) -> Path:
        """
        Stream an uploaded part to the scratch directory.

        Args:
            file: FastAPI UploadFile instance
            filename: Name to write under the scratch directory

        Returns:
            Path to the written file

        Raises:
            StorageUnavailableError: If the part cannot be read or written.
                Whatever was written for this part is removed first.
        """
        temp_path = self.root / filename
        await file.seek(0)

        try:
            async with aiofiles.open(temp_path, "xb") as f:
                while chunk := await file.read(CHUNK_SIZE):
                    await f.write(chunk)
            os.chmod(temp_path, 0o600)
        except FileExistsError as e:
            raise StorageUnavailableError(f"Scratch name collision: {filename}") from e
        except asyncio.CancelledError:
            await self.delete(temp_path)
            raise
        except Exception as e:
            logger.error("scratch_write_failed", path=str(temp_path), error=str(e))
            await self.delete(temp_path)
            raise StorageUnavailableError(f"{file.filename or 'unknown'}: could not store upload ({e})") from e

        logger.debug("scratch_file_written", filename=file.filename, temp_path=str(temp_path))
        return temp_path

    async def delete(self, file_path: Path) -> bool:
        """
        Delete a scratch file, best effort.

        Returns:
            False if the file could not be deleted; failures are only logged
        """
        try:
            if file_path.exists():
                file_path.unlink()
                logger.debug("temp_file_deleted", path=str(file_path))
            return True
        except Exception as e:
            metrics.temp_cleanup_failures_total.inc()
            logger.warning("temp_file_deletion_failed", path=str(file_path), error=str(e))
            return False


class AssetStorage:
    """Append-only permanent storage for derivatives."""

    def __init__(self, root: Path):
        self.root = Path(root)

    async def write(self, data: bytes, filename: str) -> Path:
        """
        Write a derivative. Existing files are never overwritten.

        Returns:
            Path to the written file

        Raises:
            StorageWriteFailureError: If the file exists or cannot be written
        """
        asset_path = self.root / filename
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(asset_path, "xb") as f:
                await f.write(data)
        except FileExistsError as e:
            raise StorageWriteFailureError(f"Derivative already exists: {asset_path.name}") from e
        except OSError as e:
            logger.error("asset_write_failed", path=str(asset_path), error=str(e))
            raise StorageWriteFailureError(f"Failed to write {asset_path.name}: {e}") from e

        logger.debug("asset_written", path=str(asset_path), size=len(data))
        return asset_path
