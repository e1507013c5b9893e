"""
Test Core Configuration & Validation
Tests the Rules: config loading and form/submission validation.
"""
import logging
import os
from unittest.mock import patch

from formbuilder.config import get_cors_origins, get_database_url, get_max_upload_bytes, DEFAULT_CORS_ORIGINS
from formbuilder.logging_utils import setup_logging
from formbuilder.schemas import FormPayload, SubmissionRequest
from formbuilder.services.validation import (
    NAME_REQUIRED,
    NO_ANSWERS,
    validate_form,
    validate_submission,
)


def test_database_url_from_env():
    with patch.dict(os.environ, {"DATABASE_URL": "sqlite:///tmp/test.db"}):
        assert get_database_url() == "sqlite:///tmp/test.db"


def test_cors_origins_parsing():
    """Comma separated origins are trimmed; trailing slashes removed."""
    with patch.dict(os.environ, {"CORS_ORIGINS": "https://a.example/, http://localhost:5173"}):
        assert get_cors_origins() == ["https://a.example", "http://localhost:5173"]


def test_cors_origins_default():
    with patch.dict(os.environ, {"CORS_ORIGINS": ""}):
        assert get_cors_origins() == DEFAULT_CORS_ORIGINS


def test_invalid_upload_limit_falls_back_to_default():
    with patch.dict(os.environ, {"MAX_UPLOAD_BYTES": "lots"}):
        assert get_max_upload_bytes() == 5 * 1024 * 1024


def test_valid_form_has_no_errors(sample_form):
    assert validate_form(sample_form) == []


def test_form_requires_title_and_questions():
    errors = validate_form(FormPayload(title="  "))
    assert "Form title is required" in errors
    assert "Form must have at least one question" in errors


def test_form_title_length_limit(sample_form):
    sample_form.title = "x" * 201
    assert validate_form(sample_form) == ["Title cannot exceed 200 characters"]


def test_form_question_rules(form_data):
    """Each question type reports its own missing parts, numbered from 1."""
    form_data["questions"][0]["categories"] = []
    form_data["questions"][1]["questionText"] = ""
    form_data["questions"][1]["answerOptions"] = []
    form_data["questions"][2]["passage"] = ""
    errors = validate_form(FormPayload.model_validate(form_data))
    assert errors == [
        "Question 1: At least one category is required",
        "Question 2: Question text is required",
        "Question 2: At least one answer option is required",
        "Question 3: Passage is required",
    ]


def test_form_duplicate_question_ids(form_data):
    form_data["questions"][1]["id"] = "q-cat"
    errors = validate_form(FormPayload.model_validate(form_data))
    assert errors == ["Question 2: Duplicate question id 'q-cat'"]


def test_submission_requires_name(perfect_responses):
    submission = SubmissionRequest.model_validate({"responses": perfect_responses, "name": " "})
    assert validate_submission(submission) == [NAME_REQUIRED]


def test_submission_requires_answers():
    submission = SubmissionRequest.model_validate({"responses": [], "name": "Ann"})
    assert validate_submission(submission) == [NO_ANSWERS]


def test_submission_answer_shapes():
    submission = SubmissionRequest.model_validate(
        {
            "name": "Ann",
            "responses": [
                {"questionId": "q1", "type": "categorize", "answers": [{"itemId": "i1"}]},
                {"questionId": "q2", "type": "cloze", "answers": [{"blankId": "w1", "selectedAnswer": "x"}]},
                {"questionId": "q3", "type": "comprehension", "answers": [{"textAnswer": "hi"}]},
                {"questionId": "q4", "type": "cloze", "answers": []},
            ],
        }
    )
    assert validate_submission(submission) == [
        "Response 1, Answer 1: Item ID and selected category are required for categorize questions",
        "Response 3, Answer 1: Sub-question ID is required for comprehension questions",
        "Response 4: At least one answer is required",
    ]


def test_serverless_entrypoint_exports_app():
    """api/index.py exposes the same FastAPI app."""
    from index import app as entry_app
    from formbuilder.main import app

    assert entry_app is app


def test_setup_logging_installs_single_handler():
    setup_logging("debug")
    setup_logging("debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    setup_logging("not-a-level")
    assert root.level == logging.INFO
