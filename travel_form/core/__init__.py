"""
Core components for the travel form service.

``SubmissionHandler`` lives in ``travel_form.core.submission_handler``; it is
not re-exported here because it depends on the storage package, which in
turn depends on the parsing types below.
"""

from .multipart import ParsedForm, UploadedFile, parse_submission_form
from .upload_policy import UploadDecision, UploadPolicy, check_size, check_upload

__all__ = [
    "ParsedForm",
    "UploadedFile",
    "parse_submission_form",
    "UploadDecision",
    "UploadPolicy",
    "check_size",
    "check_upload",
]
