"""
Response Routes
Submission, scoring and analytics endpoints for a form's responses.
"""
import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from formbuilder.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from formbuilder.database import get_session
from formbuilder.models import ResponseRecord
from formbuilder.routers.forms import require_form
from formbuilder.schemas import Pagination, SubmissionRequest
from formbuilder.services import repository
from formbuilder.services.analytics import summarize_responses
from formbuilder.services.scoring import score_submission
from formbuilder.services.validation import NAME_REQUIRED, validate_submission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms/{form_id}", tags=["responses"])


def require_response(session: Session, form_id: str, response_id: str) -> ResponseRecord:
    if not repository.is_object_id(form_id) or not repository.is_object_id(response_id):
        raise HTTPException(status_code=400, detail="Invalid ID")
    record = repository.get_response(session, form_id, response_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Response not found")
    return record


@router.post("/submit", status_code=201)
def submit_response(form_id: str, submission: SubmissionRequest, session: Session = Depends(get_session)):
    """
    Score and store a submission.

    The score is computed once here and persisted with the response.

    Returns:
        The stored response document, including score and maxScore.
    """
    errors = validate_submission(submission)
    if errors == [NAME_REQUIRED]:
        raise HTTPException(status_code=400, detail=NAME_REQUIRED)

    form = repository.to_form_document(require_form(session, form_id))

    if errors:
        message = errors[0] if len(errors) == 1 else "Invalid response data"
        raise HTTPException(status_code=400, detail={"message": message, "errors": errors})

    report = score_submission(form.questions, submission.responses)
    if report.ignored:
        logger.warning(
            "Form %s: ignored %d response entries (%s)",
            form_id,
            len(report.ignored),
            ", ".join(f"{entry.question_id}:{entry.reason}" for entry in report.ignored),
        )

    document = repository.create_response(session, form_id, submission, report)
    logger.info(
        "Response %s for form %s scored %s/%s", document.id, form_id, document.score, document.max_score
    )
    return {
        "success": True,
        "data": document.model_dump(mode="json", by_alias=True),
        "message": "Response submitted successfully",
    }


@router.get("/responses")
def list_responses(
    form_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    session: Session = Depends(get_session),
):
    """List a form's responses with analytics computed over all of them."""
    require_form(session, form_id)
    responses, total = repository.list_responses(session, form_id, page, limit)
    analytics = summarize_responses(repository.all_responses(session, form_id))
    pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
    return {
        "success": True,
        "data": [response.model_dump(mode="json", by_alias=True) for response in responses],
        "analytics": analytics.model_dump(by_alias=True),
        "pagination": pagination.model_dump(),
    }


@router.get("/responses/{response_id}")
def get_response(form_id: str, response_id: str, session: Session = Depends(get_session)):
    record = require_response(session, form_id, response_id)
    document = repository.to_response_document(record)
    return {"success": True, "data": document.model_dump(mode="json", by_alias=True)}


@router.post("/responses/{response_id}/rescore")
def rescore_response(form_id: str, response_id: str, session: Session = Depends(get_session)):
    """Recompute a stored response's score against the current form definition."""
    record = require_response(session, form_id, response_id)
    form = repository.to_form_document(require_form(session, form_id))
    submitted = repository.to_response_document(record)

    report = score_submission(form.questions, submitted.responses)
    document = repository.update_response_score(session, record, report)
    logger.info(
        "Rescored response %s: %s/%s -> %s/%s",
        response_id,
        submitted.score,
        submitted.max_score,
        document.score,
        document.max_score,
    )
    return {"success": True, "data": document.model_dump(mode="json", by_alias=True)}


@router.delete("/responses/{response_id}")
def delete_response(form_id: str, response_id: str, session: Session = Depends(get_session)):
    record = require_response(session, form_id, response_id)
    repository.delete_response(session, record)
    return {"success": True, "message": "Response deleted successfully"}
