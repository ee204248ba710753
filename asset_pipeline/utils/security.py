"""Filename generation for scratch and asset storage."""

import re
import secrets
import time
from pathlib import Path

_SAFE_FIELD = re.compile(r"[^A-Za-z0-9_-]")
_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")

THUMBNAIL_PREFIX = "thumb-"


def safe_extension(filename: str | None) -> str:
    """Lower-cased extension of a client filename, or '' if unusable."""
    if not filename:
        return ""
    extension = Path(filename).suffix.lower()
    return extension if _SAFE_EXTENSION.match(extension) else ""


def generate_temp_filename(field_name: str, original_name: str | None) -> str:
    """
    Generate a collision-resistant scratch filename.

    Format is ``<field>-<epoch ms>-<9 random digits><ext>``, where the
    extension is taken from the client filename.
    """
    field = _SAFE_FIELD.sub("", field_name) or "file"
    timestamp_ms = int(time.time() * 1000)
    suffix = secrets.randbelow(10**9)
    return f"{field}-{timestamp_ms}-{suffix:09d}{safe_extension(original_name)}"


def derivative_filenames(temporary_path: Path, extension: str) -> tuple[str, str]:
    """Primary and thumbnail filenames for a scratch file."""
    stem = temporary_path.stem
    primary = f"{stem}.{extension}"
    return primary, f"{THUMBNAIL_PREFIX}{primary}"
