"""Blob storage strategies for submission attachments."""

import asyncio
import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from travel_form.config.settings import Settings
from travel_form.core.multipart import UploadedFile

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/pdf": ".pdf",
}


@dataclass(frozen=True)
class StoredBlob:
    """Where an attachment's bytes live: inline ``content`` or a file ``path``."""

    content_type: str
    content: Optional[bytes] = None
    path: Optional[str] = None

    def __repr__(self) -> str:
        size = len(self.content) if self.content is not None else None
        return f"<StoredBlob(content_type='{self.content_type}', inline_bytes={size}, path='{self.path}')>"


class BlobStorage(Protocol):
    """
    A protocol that defines the interface for attachment storage.

    The submission handler works against this interface so the record can
    either carry its attachments inline or reference files kept elsewhere.
    """

    async def store_blob(self, upload: UploadedFile) -> StoredBlob:
        """Store an uploaded file and return how to find it again."""
        ...

    async def retrieve_blob(self, blob: StoredBlob) -> bytes:
        """Return the bytes of a stored attachment."""
        ...

    async def discard_blob(self, blob: StoredBlob) -> None:
        """Remove a stored attachment whose record was never committed."""
        ...


class InlineBlobStorage:
    """Keeps attachment bytes inside the record itself."""

    async def store_blob(self, upload: UploadedFile) -> StoredBlob:
        return StoredBlob(content_type=upload.content_type, content=upload.content)

    async def retrieve_blob(self, blob: StoredBlob) -> bytes:
        if blob.content is None:
            raise ValueError("Blob has no inline content")
        return blob.content

    async def discard_blob(self, blob: StoredBlob) -> None:
        return None


class DiskBlobStorage:
    """Writes attachment bytes under a directory and records the file path."""

    def __init__(self, upload_dir: str):
        """
        Initialize the disk storage with a target directory.

        Args:
            upload_dir: Directory the attachments are written to
        """
        self.upload_dir = Path(upload_dir)
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Ensure the upload directory exists."""
        os.makedirs(self.upload_dir, exist_ok=True)

    def _target_path(self, upload: UploadedFile) -> Path:
        extension = _EXTENSIONS.get(upload.content_type, "")
        stamp = int(time.time() * 1000)
        return self.upload_dir / f"{upload.field_name}-{stamp}-{uuid.uuid4().hex}{extension}"

    async def store_blob(self, upload: UploadedFile) -> StoredBlob:
        target = self._target_path(upload)
        await asyncio.to_thread(target.write_bytes, upload.content)
        logger.info(f"Stored {upload.size} bytes for '{upload.field_name}' at {target}")
        return StoredBlob(content_type=upload.content_type, path=str(target))

    async def retrieve_blob(self, blob: StoredBlob) -> bytes:
        if blob.path is None:
            raise ValueError("Blob has no file path")
        return await asyncio.to_thread(Path(blob.path).read_bytes)

    async def discard_blob(self, blob: StoredBlob) -> None:
        if blob.path is None:
            return
        try:
            await asyncio.to_thread(Path(blob.path).unlink, True)
            logger.info(f"Discarded orphaned attachment {blob.path}")
        except OSError as e:
            logger.error(f"Failed to discard attachment {blob.path}: {e}")


def build_blob_storage(settings: Settings) -> BlobStorage:
    """Select the blob storage strategy named by ``BLOB_STORAGE``."""
    if settings.BLOB_STORAGE == "disk":
        logger.info(f"Using disk blob storage at {settings.UPLOAD_DIR}")
        return DiskBlobStorage(settings.UPLOAD_DIR)
    logger.info("Using inline blob storage")
    return InlineBlobStorage()
