"""
Streaming multipart/form-data parser for form submissions.

Text parts are collected as form fields. File parts are checked against the
upload policy as soon as their headers arrive, then buffered in memory up to
the size ceiling. Any rejection aborts parsing immediately, so an oversize or
disallowed file is never read past the point where it is refused.
"""

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from travel_form.core.exceptions import MalformedUploadError, UploadRejectedError
from travel_form.core.upload_policy import UploadDecision, UploadPolicy, normalize_content_type

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """A file part read from the request body."""

    field_name: str
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class ParsedForm:
    """Text fields and accepted files of one multipart request."""

    fields: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, List[UploadedFile]] = field(default_factory=dict)

    def get_file(self, name: str) -> Optional[UploadedFile]:
        received = self.files.get(name)
        return received[0] if received else None


@dataclass
class _Part:
    name: str = ""
    filename: Optional[str] = None
    content_type: str = ""
    data: bytearray = field(default_factory=bytearray)

    @property
    def is_file(self) -> bool:
        return self.filename is not None


class SubmissionFormParser:
    """Parses one request body according to an ``UploadPolicy``."""

    def __init__(self, content_type: Optional[str], stream: AsyncIterator[bytes], policy: UploadPolicy):
        self.content_type = content_type
        self.stream = stream
        self.policy = policy
        self.form = ParsedForm()

        self._part = _Part()
        self._headers: Dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._charset = "utf-8"

    async def parse(self) -> ParsedForm:
        if not self.content_type:
            raise MalformedUploadError("No files were uploaded")

        media_type, params = parse_options_header(self.content_type)
        if media_type.lower() != b"multipart/form-data":
            raise MalformedUploadError("No files were uploaded")
        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedUploadError("Missing multipart boundary")
        charset = params.get(b"charset")
        if charset:
            self._charset = charset.decode("latin-1")

        callbacks = {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
        }
        parser = MultipartParser(boundary, callbacks)

        try:
            async for chunk in self.stream:
                if chunk:
                    parser.write(chunk)
            parser.finalize()
        except MultipartParseError as e:
            raise MalformedUploadError(f"Malformed multipart body: {e}") from e
        return self.form

    def _reject(self, decision: UploadDecision, field_name: str) -> None:
        logger.warning(f"Rejected upload for field '{field_name}': {decision.reason.value}")
        raise UploadRejectedError(decision.reason.value, field_name, decision.message)

    def _on_part_begin(self) -> None:
        self._part = _Part()
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.strip().lower()] = self._header_value.strip()
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            raise MalformedUploadError("Multipart part is missing a Content-Disposition header")
        _, options = parse_options_header(disposition)
        if b"name" not in options:
            raise MalformedUploadError("Multipart part is missing a field name")

        self._part.name = options[b"name"].decode(self._charset, errors="replace")
        filename = options.get(b"filename")
        if filename is None:
            return

        self._part.filename = filename.decode(self._charset, errors="replace")
        self._part.content_type = normalize_content_type(
            self._headers.get(b"content-type", b"application/octet-stream").decode("latin-1")
        )
        # An empty file input is treated as absent, not as a file to vet.
        if not self._part.filename:
            return

        received = len(self.form.files.get(self._part.name, []))
        decision = self.policy.check_upload(self._part.name, self._part.content_type, received)
        if not decision.accepted:
            self._reject(decision, self._part.name)

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        chunk = data[start:end]
        part = self._part
        if part.is_file:
            decision = self.policy.check_size(len(part.data) + len(chunk))
            if not decision.accepted:
                self._reject(decision, part.name)
        elif len(part.data) + len(chunk) > self.policy.max_field_size:
            raise MalformedUploadError(f"Field '{part.name}' exceeds the maximum field size")
        part.data.extend(chunk)

    def _on_part_end(self) -> None:
        part = self._part
        if not part.is_file:
            self.form.fields[part.name] = part.data.decode(self._charset, errors="replace")
            return

        if not part.filename:
            if part.data:
                raise MalformedUploadError(f"File part '{part.name}' has content but no filename")
            return

        self.form.files.setdefault(part.name, []).append(
            UploadedFile(
                field_name=part.name,
                filename=part.filename,
                content_type=part.content_type,
                content=bytes(part.data),
            )
        )


async def parse_submission_form(
    content_type: Optional[str],
    stream: AsyncIterator[bytes],
    policy: Optional[UploadPolicy] = None,
) -> ParsedForm:
    """
    Parse a multipart submission body.

    Args:
        content_type: Value of the request's Content-Type header.
        stream: Async iterator over the raw body chunks.
        policy: Upload policy to enforce; the default policy when omitted.

    Returns:
        ParsedForm: Text fields and accepted files.

    Raises:
        MalformedUploadError: If the body is not a readable multipart form.
        UploadRejectedError: If a file part violates the upload policy.
    """
    parser = SubmissionFormParser(content_type, stream, policy or UploadPolicy())
    return await parser.parse()
