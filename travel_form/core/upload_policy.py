"""
Upload acceptance rules for the submission form.

The checks here are plain predicates. The multipart parser calls
``check_upload`` as soon as a file part's headers are known, before any of
its content is buffered, and ``check_size`` while the content streams in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from travel_form.config.settings import ALLOWED_UPLOAD_TYPES

REVIEW_SCREENSHOT_FIELD = "reviewScreenshot"
TICKET_FIELD = "ticket"
FILE_FIELDS = (REVIEW_SCREENSHOT_FIELD, TICKET_FIELD)

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024


class RejectReason(str, Enum):
    UNEXPECTED_FIELD = "unexpected_field"
    TOO_MANY_FILES = "too_many_files"
    INVALID_TYPE = "invalid_type"
    FILE_TOO_LARGE = "file_too_large"


REJECT_MESSAGES = {
    RejectReason.UNEXPECTED_FIELD: "Unexpected file field",
    RejectReason.TOO_MANY_FILES: "Only one file is allowed per field",
    RejectReason.INVALID_TYPE: "Invalid file type. Only JPEG, PNG and PDF files are allowed.",
    RejectReason.FILE_TOO_LARGE: "File too large",
}


@dataclass(frozen=True)
class UploadDecision:
    """Outcome of an upload check: accepted, or rejected with a reason."""

    accepted: bool
    reason: Optional[RejectReason] = None

    @classmethod
    def accept(cls) -> "UploadDecision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: RejectReason) -> "UploadDecision":
        return cls(accepted=False, reason=reason)

    @property
    def message(self) -> Optional[str]:
        return REJECT_MESSAGES[self.reason] if self.reason else None


@dataclass(frozen=True)
class UploadPolicy:
    """Which file parts a submission may carry, and how large they may be."""

    file_fields: Tuple[str, ...] = FILE_FIELDS
    allowed_types: Tuple[str, ...] = ALLOWED_UPLOAD_TYPES
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_files_per_field: int = 1
    max_field_size: int = field(default=1024 * 1024)

    def check_upload(self, field_name: str, content_type: str, files_received: int = 0) -> UploadDecision:
        return check_upload(
            field_name,
            content_type,
            files_received,
            file_fields=self.file_fields,
            allowed_types=self.allowed_types,
            max_files_per_field=self.max_files_per_field,
        )

    def check_size(self, size: int) -> UploadDecision:
        return check_size(size, self.max_file_size)


def normalize_content_type(content_type: str) -> str:
    """Strip parameters and case from a content type: 'Image/PNG; x=y' -> 'image/png'."""
    return content_type.split(";", 1)[0].strip().lower()


def check_upload(
    field_name: str,
    content_type: str,
    files_received: int = 0,
    *,
    file_fields: Tuple[str, ...] = FILE_FIELDS,
    allowed_types: Tuple[str, ...] = ALLOWED_UPLOAD_TYPES,
    max_files_per_field: int = 1,
) -> UploadDecision:
    """
    Decide whether a file part may be read.

    Args:
        field_name: Form field name of the file part.
        content_type: Declared MIME type of the part.
        files_received: Files already accepted under the same field name.

    Returns:
        UploadDecision: accepted, or rejected with the first failing reason.
    """
    if field_name not in file_fields:
        return UploadDecision.reject(RejectReason.UNEXPECTED_FIELD)
    if files_received >= max_files_per_field:
        return UploadDecision.reject(RejectReason.TOO_MANY_FILES)
    if normalize_content_type(content_type) not in allowed_types:
        return UploadDecision.reject(RejectReason.INVALID_TYPE)
    return UploadDecision.accept()


def check_size(size: int, limit: int = DEFAULT_MAX_FILE_SIZE) -> UploadDecision:
    if size > limit:
        return UploadDecision.reject(RejectReason.FILE_TOO_LARGE)
    return UploadDecision.accept()
