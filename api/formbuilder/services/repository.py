"""
Repository Service
Reads and writes form and response documents through a SQLModel session.
"""
import os
import re
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from formbuilder.models import FormRecord, ResponseRecord, utcnow
from formbuilder.schemas import FormDocument, FormPayload, ResponseDocument, SubmissionRequest
from formbuilder.services.scoring import ScoreReport

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """Generate a 24 hex character document id."""
    return os.urandom(12).hex()


def is_object_id(value: Optional[str]) -> bool:
    return bool(value) and OBJECT_ID_PATTERN.match(value) is not None


# --- Forms ---

def to_form_document(record: FormRecord) -> FormDocument:
    return FormDocument.model_validate(
        {
            **(record.document or {}),
            "_id": record.id,
            "createdBy": record.created_by,
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
        }
    )


def _apply_payload(record: FormRecord, payload: FormPayload) -> None:
    record.title = payload.title.strip()
    record.description = payload.description.strip() if payload.description else None
    record.is_active = payload.is_active
    record.document = payload.model_dump(mode="json", by_alias=True)


def create_form(session: Session, payload: FormPayload, created_by: Optional[str] = None) -> FormDocument:
    record = FormRecord(id=new_object_id(), title="", created_by=(created_by or "anonymous").strip() or "anonymous")
    _apply_payload(record, payload)
    session.add(record)
    session.commit()
    session.refresh(record)
    return to_form_document(record)


def get_form(session: Session, form_id: str) -> Optional[FormRecord]:
    return session.get(FormRecord, form_id)


def list_forms(
    session: Session, page: int, limit: int, search: str = ""
) -> Tuple[List[FormDocument], int]:
    """
    Page through forms, newest first.

    Args:
        session: Open database session.
        page: 1-based page number.
        limit: Page size.
        search: Case-insensitive substring matched on title or description.

    Returns:
        (forms on the page, total number of matching forms)
    """
    statement = select(FormRecord)
    if search:
        pattern = f"%{search}%"
        statement = statement.where(
            or_(col(FormRecord.title).ilike(pattern), col(FormRecord.description).ilike(pattern))
        )

    total = session.exec(select(func.count()).select_from(statement.subquery())).one()
    records = session.exec(
        statement.order_by(col(FormRecord.created_at).desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return [to_form_document(record) for record in records], total


def update_form(session: Session, record: FormRecord, payload: FormPayload) -> FormDocument:
    _apply_payload(record, payload)
    record.updated_at = utcnow()
    session.add(record)
    session.commit()
    session.refresh(record)
    return to_form_document(record)


def delete_form(session: Session, record: FormRecord) -> int:
    """Delete a form and its responses. Returns the number of responses removed."""
    responses = session.exec(select(ResponseRecord).where(ResponseRecord.form_id == record.id)).all()
    for response in responses:
        session.delete(response)
    session.flush()
    session.delete(record)
    session.commit()
    return len(responses)


# --- Responses ---

def to_response_document(record: ResponseRecord) -> ResponseDocument:
    return ResponseDocument.model_validate(
        {
            **(record.document or {}),
            "_id": record.id,
            "formId": record.form_id,
            "score": record.score,
            "maxScore": record.max_score,
            "timeSpent": record.time_spent,
            "submittedBy": record.submitted_by,
            "submittedAt": record.submitted_at,
            "createdAt": record.created_at,
        }
    )


def _score_fields(report: ScoreReport) -> dict:
    return {
        "breakdown": [outcome.model_dump(mode="json", by_alias=True) for outcome in report.questions],
        "ignored": [entry.model_dump(mode="json", by_alias=True) for entry in report.ignored],
    }


def create_response(
    session: Session, form_id: str, request: SubmissionRequest, report: ScoreReport
) -> ResponseDocument:
    document = {
        "responses": [response.model_dump(mode="json", by_alias=True) for response in request.responses],
        "isComplete": True,
        "feedback": request.feedback.strip() if request.feedback else None,
        **_score_fields(report),
    }
    record = ResponseRecord(
        id=new_object_id(),
        form_id=form_id,
        submitted_by=request.name.strip(),
        score=report.score,
        max_score=report.max_score,
        time_spent=request.time_spent or 0,
        document=document,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return to_response_document(record)


def get_response(session: Session, form_id: str, response_id: str) -> Optional[ResponseRecord]:
    return session.exec(
        select(ResponseRecord).where(ResponseRecord.id == response_id, ResponseRecord.form_id == form_id)
    ).first()


def list_responses(
    session: Session, form_id: str, page: int, limit: int
) -> Tuple[List[ResponseDocument], int]:
    statement = select(ResponseRecord).where(ResponseRecord.form_id == form_id)
    total = session.exec(select(func.count()).select_from(statement.subquery())).one()
    records = session.exec(
        statement.order_by(col(ResponseRecord.created_at).desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return [to_response_document(record) for record in records], total


def all_responses(session: Session, form_id: str) -> List[ResponseDocument]:
    records = session.exec(select(ResponseRecord).where(ResponseRecord.form_id == form_id)).all()
    return [to_response_document(record) for record in records]


def update_response_score(session: Session, record: ResponseRecord, report: ScoreReport) -> ResponseDocument:
    """Store a recomputed score; the submitted answers are left untouched."""
    record.score = report.score
    record.max_score = report.max_score
    record.document = {**(record.document or {}), **_score_fields(report)}
    session.add(record)
    session.commit()
    session.refresh(record)
    return to_response_document(record)


def delete_response(session: Session, record: ResponseRecord) -> None:
    session.delete(record)
    session.commit()
