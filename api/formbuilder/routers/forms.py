"""
Form Routes
CRUD endpoints for forms, including image uploads sent with the form.
"""
import logging
import math
from typing import List, Optional, Set

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError
from sqlmodel import Session

from formbuilder.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MAX_QUESTION_IMAGES
from formbuilder.database import get_session
from formbuilder.models import FormRecord
from formbuilder.schemas import FormPayload, ImageRef, Pagination
from formbuilder.services import repository
from formbuilder.services.media import delete_image, save_image
from formbuilder.services.validation import format_validation_errors, validate_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


def require_form(session: Session, form_id: str) -> FormRecord:
    """Load a form or fail with 400 (malformed id) / 404 (unknown id)."""
    if not repository.is_object_id(form_id):
        raise HTTPException(status_code=400, detail="Invalid form ID")
    record = repository.get_form(session, form_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Form not found")
    return record


def parse_form_data(form_data: str) -> FormPayload:
    """
    Parse and validate the `formData` JSON field of a multipart request.

    Raises:
        HTTPException: 400 with the list of problems found.
    """
    try:
        payload = FormPayload.model_validate_json(form_data)
    except ValidationError as exc:
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid form data", "errors": format_validation_errors(exc)},
        )

    errors = validate_form(payload)
    if errors:
        raise HTTPException(status_code=400, detail={"message": "Invalid form data", "errors": errors})
    return payload


def image_ids(payload: FormPayload) -> Set[str]:
    ids = set()
    if payload.header_image and payload.header_image.public_id:
        ids.add(payload.header_image.public_id)
    for question in payload.questions:
        if question.image and question.image.public_id:
            ids.add(question.image.public_id)
    return ids


def carry_over_images(payload: FormPayload, previous: FormPayload) -> None:
    """Keep the header image and question images (matched by id) the payload leaves empty."""
    if payload.header_image is None:
        payload.header_image = previous.header_image
    previous_by_id = {question.id: question.image for question in previous.questions}
    for question in payload.questions:
        if question.image is None:
            question.image = previous_by_id.get(question.id)


def attach_images(
    payload: FormPayload,
    header_image: Optional[UploadFile],
    question_images: Optional[List[UploadFile]],
    saved: List[ImageRef],
) -> None:
    """Store uploaded images and reference them from the payload; question images map by index."""
    question_images = [upload for upload in (question_images or []) if upload.filename]
    if len(question_images) > MAX_QUESTION_IMAGES:
        raise HTTPException(
            status_code=400, detail=f"At most {MAX_QUESTION_IMAGES} question images are allowed"
        )

    if header_image is not None and header_image.filename:
        ref = save_image(header_image, "forms")
        saved.append(ref)
        payload.header_image = ref

    for index, upload in enumerate(question_images):
        ref = save_image(upload, "questions")
        saved.append(ref)
        if index < len(payload.questions):
            payload.questions[index].image = ref


def _discard(saved: List[ImageRef]) -> None:
    for ref in saved:
        delete_image(ref.public_id)


@router.get("")
def list_forms(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: str = Query(""),
    session: Session = Depends(get_session),
):
    """List forms, newest first, optionally filtered by title/description."""
    forms, total = repository.list_forms(session, page, limit, search.strip())
    pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
    return {
        "success": True,
        "data": [form.model_dump(mode="json", by_alias=True) for form in forms],
        "pagination": pagination.model_dump(),
    }


@router.get("/{form_id}")
def get_form(form_id: str, session: Session = Depends(get_session)):
    record = require_form(session, form_id)
    document = repository.to_form_document(record)
    return {"success": True, "data": document.model_dump(mode="json", by_alias=True)}


@router.post("", status_code=201)
def create_form(
    form_data: str = Form(..., alias="formData", description="Form content as a JSON string"),
    created_by: Optional[str] = Form(default=None, alias="createdBy"),
    header_image: Optional[UploadFile] = File(None, alias="headerImage"),
    question_images: Optional[List[UploadFile]] = File(None, alias="questionImages"),
    session: Session = Depends(get_session),
):
    """
    Create a form from a multipart request.

    Images are stored before the form is saved; if anything fails the
    stored files are removed again so no partial form is left behind.
    """
    payload = parse_form_data(form_data)

    saved: List[ImageRef] = []
    try:
        attach_images(payload, header_image, question_images, saved)
        document = repository.create_form(session, payload, created_by)
    except Exception:
        _discard(saved)
        raise

    logger.info("Created form %s with %d questions", document.id, len(document.questions))
    return {"success": True, "data": document.model_dump(mode="json", by_alias=True)}


@router.put("/{form_id}")
def update_form(
    form_id: str,
    form_data: str = Form(..., alias="formData", description="Form content as a JSON string"),
    header_image: Optional[UploadFile] = File(None, alias="headerImage"),
    question_images: Optional[List[UploadFile]] = File(None, alias="questionImages"),
    session: Session = Depends(get_session),
):
    """
    Replace a form's content.

    Images are only replaced when a new one is uploaded; files that are
    no longer referenced afterwards are deleted.
    """
    record = require_form(session, form_id)
    previous = repository.to_form_document(record)
    previous_images = image_ids(previous)
    payload = parse_form_data(form_data)
    carry_over_images(payload, previous)

    saved: List[ImageRef] = []
    try:
        attach_images(payload, header_image, question_images, saved)
        document = repository.update_form(session, record, payload)
    except Exception:
        _discard(saved)
        raise

    for public_id in previous_images - image_ids(document):
        delete_image(public_id)

    logger.info("Updated form %s", document.id)
    return {"success": True, "data": document.model_dump(mode="json", by_alias=True)}


@router.delete("/{form_id}")
def delete_form(form_id: str, session: Session = Depends(get_session)):
    """Delete a form together with its images and responses."""
    record = require_form(session, form_id)
    stored_images = image_ids(repository.to_form_document(record))

    removed = repository.delete_form(session, record)
    for public_id in stored_images:
        delete_image(public_id)

    logger.info("Deleted form %s and %d responses", form_id, removed)
    return {"success": True, "message": "Form deleted successfully"}
