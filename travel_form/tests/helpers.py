"""Shared builders for submission payloads used across the test-suite."""

from pathlib import Path
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select

from travel_form.config.settings import Settings
from travel_form.models.travel_form_orm import TravelFormORM
from travel_form.storage.blob_storage import StoredBlob
from travel_form.storage.submission_store import SubmissionStore

BOUNDARY = "----travelformtestboundary"

VALID_FIELDS: Dict[str, str] = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+91 98450 12345",
    "dateOfTravel": "2025-03-14",
    "source": "instagram",
}


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Settings pointing at a throwaway SQLite database under ``tmp_path``."""
    values = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'travel_forms.db'}",
        "ENVIRONMENT": "development",
        "DB_CONNECT_TIMEOUT_SECONDS": 2.0,
        "UPLOAD_DIR": str(tmp_path / "uploads"),
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def jpeg_bytes(size: int) -> bytes:
    header = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"
    return header + b"\x5a" * max(size - len(header), 0)


def pdf_bytes(size: int) -> bytes:
    header = b"%PDF-1.4\n"
    return header + b"\x25" * max(size - len(header), 0)


def valid_files(screenshot_size: int = 10 * 1024, ticket_size: int = 20 * 1024) -> Dict[str, Tuple[str, bytes, str]]:
    return {
        "reviewScreenshot": ("review.jpg", jpeg_bytes(screenshot_size), "image/jpeg"),
        "ticket": ("ticket.pdf", pdf_bytes(ticket_size), "application/pdf"),
    }


def build_multipart(
    fields: Optional[Dict[str, str]] = None,
    files: Iterable[Tuple[str, str, bytes, str]] = (),
    boundary: str = BOUNDARY,
) -> bytes:
    """Encode fields and ``(field, filename, content, content_type)`` files as multipart/form-data."""
    delimiter = f"--{boundary}".encode()
    chunks: List[bytes] = []
    for name, value in (fields or {}).items():
        chunks.append(delimiter + b"\r\n")
        chunks.append(f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode())
        chunks.append(value.encode("utf-8") + b"\r\n")
    for name, filename, content, content_type in files:
        chunks.append(delimiter + b"\r\n")
        chunks.append(f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'.encode())
        chunks.append(f"Content-Type: {content_type}\r\n\r\n".encode())
        chunks.append(content + b"\r\n")
    chunks.append(delimiter + b"--\r\n")
    return b"".join(chunks)


def content_type_header(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


class ChunkedBody:
    """Async body stream that records how many chunks the consumer pulled."""

    def __init__(self, body: bytes, chunk_size: int = 1024):
        self.chunks = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]
        self.consumed = 0

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.consumed += 1
            yield chunk


def blobs_of(record: TravelFormORM) -> Dict[str, StoredBlob]:
    return {
        "reviewScreenshot": StoredBlob(
            content_type=record.review_screenshot_type,
            content=record.review_screenshot,
            path=record.review_screenshot_path,
        ),
        "ticket": StoredBlob(
            content_type=record.ticket_type,
            content=record.ticket,
            path=record.ticket_path,
        ),
    }


async def count_records(store: SubmissionStore) -> int:
    engine = await store.connect()
    async with engine.connect() as conn:
        result = await conn.execute(select(func.count()).select_from(TravelFormORM))
        return result.scalar_one()
