"""
Models package for the travel form service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure the ORM model is registered with the Base metadata when this package is imported.
from .base import Base
from .travel_form_orm import TravelFormORM

from .dtos import REQUIRED_FIELDS, SubmissionFields, SubmissionOut

__all__ = [
    "Base",
    "TravelFormORM",
    "REQUIRED_FIELDS",
    "SubmissionFields",
    "SubmissionOut",
]
