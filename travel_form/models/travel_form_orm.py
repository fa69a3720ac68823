"""
SQLAlchemy ORM model for the 'travel_forms' collection.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, LargeBinary, String, Text
from sqlalchemy import TIMESTAMP

from travel_form.config.settings import ALLOWED_UPLOAD_TYPES

from .base import Base

_ALLOWED_TYPES_SQL = ", ".join(f"'{content_type}'" for content_type in ALLOWED_UPLOAD_TYPES)


def _new_submission_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TravelFormORM(Base):
    """
    SQLAlchemy ORM model representing one travel form submission.

    Each attachment is held either inline (``review_screenshot`` / ``ticket``)
    or as a reference to content stored on disk (``*_path``), depending on
    the blob storage strategy the service runs with.

    Attributes:
        id (str): Identifier generated when the record is persisted.
        name (str): Full name of the submitter.
        email (str): Contact email.
        phone (str): Contact phone number.
        date_of_travel (date): Date of the claimed trip.
        source (str): Channel the submitter came from.
        review_screenshot (bytes, optional): Inline review screenshot content.
        review_screenshot_path (str, optional): Location of the stored screenshot.
        review_screenshot_type (str): MIME type of the screenshot.
        ticket (bytes, optional): Inline ticket content.
        ticket_path (str, optional): Location of the stored ticket.
        ticket_type (str): MIME type of the ticket.
        created_at (datetime): Timestamp when the record was persisted.
    """
    __tablename__ = "travel_forms"

    id = Column(String(32), primary_key=True, default=_new_submission_id, comment="Generated submission identifier.")
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    date_of_travel = Column(Date, nullable=False)
    source = Column(Text, nullable=False, comment="Channel the submitter came from.")
    review_screenshot = Column(LargeBinary, nullable=True)
    review_screenshot_path = Column(Text, nullable=True)
    review_screenshot_type = Column(Text, nullable=False)
    ticket = Column(LargeBinary, nullable=True)
    ticket_path = Column(Text, nullable=True)
    ticket_type = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow, comment="Timestamp of submission.")

    __table_args__ = (
        CheckConstraint(
            "name <> '' AND email <> '' AND phone <> '' AND source <> ''",
            name="ck_travel_forms_scalars_present",
        ),
        CheckConstraint(
            "review_screenshot IS NOT NULL OR review_screenshot_path IS NOT NULL",
            name="ck_travel_forms_review_screenshot_present",
        ),
        CheckConstraint(
            "ticket IS NOT NULL OR ticket_path IS NOT NULL",
            name="ck_travel_forms_ticket_present",
        ),
        CheckConstraint(
            f"review_screenshot_type IN ({_ALLOWED_TYPES_SQL})",
            name="ck_travel_forms_review_screenshot_type",
        ),
        CheckConstraint(
            f"ticket_type IN ({_ALLOWED_TYPES_SQL})",
            name="ck_travel_forms_ticket_type",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<TravelFormORM(id='{self.id}', email='{self.email}', "
            f"date_of_travel='{self.date_of_travel}', created_at='{self.created_at}')>"
        )
