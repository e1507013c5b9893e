"""
Validation Service
Business rules for forms and submissions, reported as message lists.
"""
from typing import Iterable, List

from pydantic import ValidationError

from formbuilder.config import DESCRIPTION_MAX_LENGTH, FEEDBACK_MAX_LENGTH, TITLE_MAX_LENGTH
from formbuilder.schemas import (
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    FormPayload,
    QuestionType,
    SubmissionRequest,
)

NAME_REQUIRED = "Name is required"
NO_ANSWERS = "Please answer at least one question before submitting"


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def format_error_list(errors: Iterable[dict]) -> List[str]:
    """Flatten pydantic-style error dicts into "<location>: <message>" strings."""
    messages: List[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return messages


def format_validation_errors(exc: ValidationError) -> List[str]:
    return format_error_list(exc.errors())


def validate_form(payload: FormPayload) -> List[str]:
    """
    Check a form's content before it is saved.

    Returns:
        A list of error messages; empty when the form is valid.
    """
    errors: List[str] = []

    if _blank(payload.title):
        errors.append("Form title is required")
    elif len(payload.title.strip()) > TITLE_MAX_LENGTH:
        errors.append(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")

    if payload.description and len(payload.description.strip()) > DESCRIPTION_MAX_LENGTH:
        errors.append(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")

    if payload.settings.time_limit is not None and payload.settings.time_limit < 1:
        errors.append("Time limit must be at least 1 minute")

    if not payload.questions:
        errors.append("Form must have at least one question")
        return errors

    seen_ids = set()
    for index, question in enumerate(payload.questions, start=1):
        prefix = f"Question {index}"
        if question.id in seen_ids:
            errors.append(f"{prefix}: Duplicate question id '{question.id}'")
        seen_ids.add(question.id)

        if _blank(question.question_text):
            errors.append(f"{prefix}: Question text is required")

        if isinstance(question, CategorizeQuestion):
            if not question.categories:
                errors.append(f"{prefix}: At least one category is required")
            if not question.options:
                errors.append(f"{prefix}: At least one item is required")
        elif isinstance(question, ClozeQuestion):
            if _blank(question.sentence):
                errors.append(f"{prefix}: Sentence is required")
            if not question.selected_words:
                errors.append(f"{prefix}: At least one word must be selected")
            if not question.answer_options:
                errors.append(f"{prefix}: At least one answer option is required")
        elif isinstance(question, ComprehensionQuestion):
            if _blank(question.passage):
                errors.append(f"{prefix}: Passage is required")
            if not question.questions:
                errors.append(f"{prefix}: At least one sub-question is required")

    return errors


def validate_submission(request: SubmissionRequest) -> List[str]:
    """
    Check the shape of a submission before it is scored.

    Returns:
        A list of error messages; empty when the submission is valid.
    """
    if _blank(request.name):
        return [NAME_REQUIRED]
    if not request.responses:
        return [NO_ANSWERS]

    errors: List[str] = []
    if request.feedback and len(request.feedback.strip()) > FEEDBACK_MAX_LENGTH:
        errors.append(f"Feedback cannot exceed {FEEDBACK_MAX_LENGTH} characters")

    for index, response in enumerate(request.responses, start=1):
        prefix = f"Response {index}"
        if _blank(response.question_id):
            errors.append(f"{prefix}: Question ID is required")
        if response.type is None:
            errors.append(f"{prefix}: Question type is required")
        if not response.answers:
            errors.append(f"{prefix}: At least one answer is required")
            continue

        for answer_index, answer in enumerate(response.answers, start=1):
            where = f"{prefix}, Answer {answer_index}"
            if response.type == QuestionType.CATEGORIZE:
                if _blank(answer.item_id) or _blank(answer.selected_category_id):
                    errors.append(
                        f"{where}: Item ID and selected category are required for categorize questions"
                    )
            elif response.type == QuestionType.CLOZE:
                if _blank(answer.blank_id) or _blank(answer.selected_answer):
                    errors.append(
                        f"{where}: Blank ID and selected answer are required for cloze questions"
                    )
            elif response.type == QuestionType.COMPREHENSION:
                if _blank(answer.sub_question_id):
                    errors.append(
                        f"{where}: Sub-question ID is required for comprehension questions"
                    )

    return errors
