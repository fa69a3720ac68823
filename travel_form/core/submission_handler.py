"""
Submission pipeline for the travel form.

Runs one request through parse -> file checks -> field checks -> store
connect -> persist, stopping at the first failing gate. Failures are raised
as ``TravelFormError`` subclasses; rendering them is left to the API layer.
"""

import logging
from typing import AsyncIterator, Dict, List, Optional

from pydantic import ValidationError

from travel_form.core.exceptions import InvalidFieldError, MissingFieldsError, MissingFilesError
from travel_form.core.multipart import ParsedForm, UploadedFile, parse_submission_form
from travel_form.core.upload_policy import REVIEW_SCREENSHOT_FIELD, TICKET_FIELD, UploadPolicy
from travel_form.models.dtos import REQUIRED_FIELDS, SubmissionFields, SubmissionOut
from travel_form.models.travel_form_orm import TravelFormORM
from travel_form.storage.blob_storage import BlobStorage, StoredBlob
from travel_form.storage.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


def find_missing_fields(fields: Dict[str, str]) -> List[str]:
    """Return the required field names that are absent or blank, in form order."""
    return [name for name in REQUIRED_FIELDS if not (fields.get(name) or "").strip()]


def find_missing_files(form: ParsedForm) -> List[str]:
    return [name for name in (REVIEW_SCREENSHOT_FIELD, TICKET_FIELD) if form.get_file(name) is None]


class SubmissionHandler:
    """
    Validates and persists one form submission.

    Attributes:
        store: Shared document store client.
        blob_storage: Strategy deciding where attachment bytes live.
        policy: Upload rules enforced while parsing the body.
    """

    def __init__(self, store: SubmissionStore, blob_storage: BlobStorage, policy: Optional[UploadPolicy] = None):
        self.store = store
        self.blob_storage = blob_storage
        self.policy = policy or UploadPolicy()

    async def handle(self, content_type: Optional[str], body: AsyncIterator[bytes]) -> SubmissionOut:
        """
        Run the submission pipeline.

        Args:
            content_type: The request's Content-Type header.
            body: Async iterator over the raw request body.

        Returns:
            SubmissionOut: The persisted record without attachment content.

        Raises:
            ClientInputError: For uploads, files or fields the caller must fix.
            DependencyError: If the store cannot be reached or rejects the record.
        """
        logger.info("Received form submission request")
        form = await parse_submission_form(content_type, body, self.policy)

        review_screenshot = form.get_file(REVIEW_SCREENSHOT_FIELD)
        ticket = form.get_file(TICKET_FIELD)
        logger.info(
            "Files received: "
            f"reviewScreenshot={review_screenshot.filename if review_screenshot else 'missing'}, "
            f"ticket={ticket.filename if ticket else 'missing'}"
        )

        missing_files = find_missing_files(form)
        if missing_files:
            logger.warning(f"Missing required files: {missing_files}")
            raise MissingFilesError(
                missing_files,
                received={"hasReviewScreenshot": review_screenshot is not None, "hasTicket": ticket is not None},
            )

        missing_fields = find_missing_fields(form.fields)
        if missing_fields:
            logger.warning(f"Missing required fields: {missing_fields}")
            raise MissingFieldsError(missing_fields)

        try:
            fields = SubmissionFields.model_validate({name: form.fields[name] for name in REQUIRED_FIELDS})
        except ValidationError as e:
            invalid = sorted({str(error["loc"][0]) for error in e.errors() if error.get("loc")})
            logger.warning(f"Invalid field values: {invalid}")
            raise InvalidFieldError(invalid) from e

        await self.store.connect()

        record = await self._persist(fields, review_screenshot, ticket)
        return SubmissionOut.model_validate(record)

    async def _persist(self, fields: SubmissionFields, review_screenshot: UploadedFile, ticket: UploadedFile) -> TravelFormORM:
        stored: List[StoredBlob] = []
        try:
            screenshot_blob = await self.blob_storage.store_blob(review_screenshot)
            stored.append(screenshot_blob)
            ticket_blob = await self.blob_storage.store_blob(ticket)
            stored.append(ticket_blob)

            record = TravelFormORM(
                name=fields.name,
                email=fields.email,
                phone=fields.phone,
                date_of_travel=fields.date_of_travel,
                source=fields.source,
                review_screenshot=screenshot_blob.content,
                review_screenshot_path=screenshot_blob.path,
                review_screenshot_type=screenshot_blob.content_type,
                ticket=ticket_blob.content,
                ticket_path=ticket_blob.path,
                ticket_type=ticket_blob.content_type,
            )
            logger.info(
                f"Creating new TravelForm document: name={fields.name!r}, email={fields.email!r}, "
                f"dateOfTravel={fields.date_of_travel.isoformat()}, source={fields.source!r}, "
                f"reviewScreenshot={review_screenshot.size} bytes, ticket={ticket.size} bytes"
            )
            return await self.store.insert(record)
        except BaseException:
            # Cancellation included.
            for blob in stored:
                await self.blob_storage.discard_blob(blob)
            raise
