"""Exception hierarchy for the travel form service.

Every failure the submission pipeline can report maps to one of these
classes. Each carries the HTTP status it surfaces as and renders its own
JSON body, so the API boundary only has to catch ``TravelFormError``.
"""

from typing import Any, Dict, List, Optional

__all__ = (
    'TravelFormError',
    'ClientInputError',
    'MalformedUploadError',
    'UploadRejectedError',
    'MissingFilesError',
    'MissingFieldsError',
    'InvalidFieldError',
    'DependencyError',
    'StoreConnectionError',
    'StoreWriteError',
)


class TravelFormError(Exception):
    """Base exception for all travel form errors.

    Attributes:
        status_code: HTTP status the error is reported with.
        message: Caller-facing message, safe to expose in any environment.
        payload: Extra caller-facing keys merged into the response body.
    """

    status_code: int = 500

    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.payload = payload or {}
        super().__init__(message)

    def to_payload(self, expose_details: bool = False) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        body.update(self.payload)
        return body


# =============================================================================
# Client input errors
# =============================================================================
class ClientInputError(TravelFormError):
    """Base class for errors caused by the request content. Never retried."""

    status_code = 400


class MalformedUploadError(ClientInputError):
    """Raised when the request body is not a readable multipart form."""


class UploadRejectedError(ClientInputError):
    """Raised when the upload policy refuses a file part."""

    def __init__(self, reason: str, field_name: str, message: str) -> None:
        self.reason = reason
        self.field_name = field_name
        super().__init__(message, payload={"code": reason, "field": field_name})


class MissingFilesError(ClientInputError):
    """Raised when one or both required file parts are absent."""

    def __init__(self, missing: List[str], received: Dict[str, bool]) -> None:
        self.missing = missing
        super().__init__(
            "Both review screenshot and ticket are required",
            payload={"files": missing, "received": received},
        )


class MissingFieldsError(ClientInputError):
    """Raised when required text fields are missing or blank."""

    def __init__(self, fields: List[str]) -> None:
        self.fields = fields
        super().__init__("Missing required fields", payload={"fields": fields})


class InvalidFieldError(ClientInputError):
    """Raised when a text field is present but cannot be interpreted."""

    def __init__(self, fields: List[str], message: str = "Invalid field values") -> None:
        self.fields = fields
        super().__init__(message, payload={"fields": fields})


# =============================================================================
# Dependency errors
# =============================================================================
class DependencyError(TravelFormError):
    """Base class for document store failures.

    ``message`` is the generic caller-facing text. ``cause`` holds the
    underlying failure and is only rendered as ``details`` when the caller
    is allowed to see it.
    """

    status_code = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None, detail: Optional[str] = None) -> None:
        self.cause = cause
        self.detail = detail or (str(cause) if cause is not None else None)
        super().__init__(message)

    def to_payload(self, expose_details: bool = False) -> Dict[str, Any]:
        body = super().to_payload(expose_details)
        if expose_details and self.detail:
            body["details"] = self.detail
        return body


class StoreConnectionError(DependencyError):
    """Raised when the document store cannot be reached."""

    def __init__(self, detail: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__("Database connection failed", cause=cause, detail=detail)


class StoreWriteError(DependencyError):
    """Raised when the store rejects an insert."""

    def __init__(self, detail: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__("Failed to save form data", cause=cause, detail=detail)
