"""
Pydantic Data Transfer Objects (DTOs) for the travel form service.

These models are used for form field validation and API response rendering.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_FIELDS = ("name", "email", "phone", "dateOfTravel", "source")


class SubmissionFields(BaseModel):
    """
    The scalar fields of a submission, as posted by the form.

    Field names follow the form (camelCase aliases); blank values are
    rejected before this model is built.
    """
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    date_of_travel: date = Field(..., alias="dateOfTravel")
    source: str = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @field_validator("date_of_travel", mode="before")
    @classmethod
    def parse_date_of_travel(cls, value: Any) -> Any:
        """Accept an ISO date, or an ISO datetime whose date part is used."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        try:
            return date.fromisoformat(value)
        except ValueError:
            # Browsers may post a full timestamp, e.g. "2025-03-01T00:00:00.000Z".
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


class SubmissionOut(BaseModel):
    """
    DTO for a persisted submission returned to the caller.

    Mirrors TravelFormORM without attachment content or storage paths.
    """
    id: str
    name: str
    email: str
    phone: str
    date_of_travel: date = Field(..., serialization_alias="dateOfTravel")
    source: str
    review_screenshot_type: str = Field(..., serialization_alias="reviewScreenshotType")
    ticket_type: str = Field(..., serialization_alias="ticketType")
    created_at: datetime = Field(..., serialization_alias="createdAt")

    model_config = {"from_attributes": True}

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
