"""Local file storage for uploaded documents."""

import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/gif",
    }
)

CHUNK_SIZE = 1024 * 1024


class FileTooLargeError(Exception):
    pass


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def unique_filename(original: Optional[str]) -> str:
    """Random stored name that keeps the original extension."""
    suffix = Path(original or "").suffix.lower()
    return f"document-{uuid.uuid4().hex}{suffix}"


async def save_upload_file(upload: UploadFile, destination: Path, max_bytes: int) -> int:
    """
    Stream an upload to ``destination`` and return its size in bytes.

    Raises FileTooLargeError (and removes the partial file) when ``max_bytes`` is exceeded.
    """
    ensure_directory(destination.parent)
    size = 0
    with destination.open("wb") as f:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                break
            f.write(chunk)
    if size > max_bytes:
        remove_file(destination)
        raise FileTooLargeError(f"File exceeds the {max_bytes} byte limit")
    return size


def remove_file(path: Path) -> bool:
    """Delete a stored file. Failures are logged, never raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove stored file %s", path, exc_info=True)
        return False
    return True
