"""
Form submission API endpoint.

Accepts the multipart travel form, runs it through the submission pipeline
and renders every outcome as a JSON response.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from travel_form.core.exceptions import ClientInputError, TravelFormError
from travel_form.core.submission_handler import SubmissionHandler

router = APIRouter()
logger = logging.getLogger(__name__)


def get_submission_handler(request: Request) -> SubmissionHandler:
    """Build a handler around the process-wide store and storage strategy."""
    state = request.app.state
    return SubmissionHandler(store=state.store, blob_storage=state.blob_storage, policy=state.upload_policy)


@router.post(
    "/submit-form",
    status_code=201,
    summary="Submit travel form",
    description="Multipart form with name, email, phone, dateOfTravel, source and the "
                "reviewScreenshot and ticket files (JPEG, PNG or PDF, 5 MiB each).",
)
async def submit_form(
    request: Request,
    handler: SubmissionHandler = Depends(get_submission_handler),
) -> JSONResponse:
    """
    Validate and store one travel form submission.

    Returns:
        JSONResponse: 201 with the stored record (without attachments), 400 for
        input the caller must correct, 500 for store or unexpected failures.
    """
    expose_details = request.app.state.settings.expose_error_details
    try:
        submission = await handler.handle(request.headers.get("content-type"), request.stream())
    except ClientDisconnect:
        logger.info("Client disconnected before the submission was fully received")
        return JSONResponse(status_code=400, content={"error": "Client disconnected"})
    except ClientInputError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_payload(expose_details))
    except TravelFormError as e:
        logger.error(f"Form submission failed: {e.message}")
        return JSONResponse(status_code=e.status_code, content=e.to_payload(expose_details))
    except Exception as e:
        logger.error(f"Unhandled error in form submission: {e}", exc_info=True)
        content = {"error": "Failed to submit form"}
        if expose_details:
            content["details"] = str(e)
        return JSONResponse(status_code=500, content=content)

    return JSONResponse(
        status_code=201,
        content={"message": "Form submitted successfully", "data": submission.to_response()},
    )
