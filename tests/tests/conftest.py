"""
Pytest Configuration & Shared Fixtures
"""
import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from formbuilder.database import get_session
from formbuilder.main import app
from formbuilder.schemas import FormPayload


def build_form_data() -> dict:
    """
    A form with one question of each type, in wire (camelCase) format.

    Max score: categorize 1 + cloze 1 + comprehension (2 + 1 + 1) = 6.
    """
    return {
        "title": "General Knowledge",
        "description": "Mixed question types",
        "questions": [
            {
                "id": "q-cat",
                "type": "categorize",
                "questionText": "Sort the animals",
                "categories": [
                    {"id": "catA", "name": "Mammals"},
                    {"id": "catB", "name": "Birds"},
                    {"id": "catC", "name": "Fish"},
                ],
                "options": [
                    {"id": "item1", "text": "Dog", "categoryId": "catA"},
                    {"id": "item2", "text": "Eagle", "categoryId": "catB"},
                ],
            },
            {
                "id": "q-cloze",
                "type": "cloze",
                "questionText": "Fill in the blanks",
                "sentence": "The sky is blue and the grass is green",
                "selectedWords": [
                    {"word": "blue", "position": 3, "key": "w1"},
                    {"word": "green", "position": 8, "key": "w2"},
                ],
                "answerOptions": [
                    {"id": "o1", "text": "blue", "isCorrect": True, "wordKey": "w1"},
                    {"id": "o2", "text": "red", "isCorrect": False, "wordKey": "w1"},
                    {"id": "o3", "text": "green", "isCorrect": True, "wordKey": "w2"},
                    {"id": "o4", "text": "purple", "isCorrect": False, "wordKey": "w2"},
                ],
            },
            {
                "id": "q-comp",
                "type": "comprehension",
                "questionText": "Read the passage",
                "passage": "Water boils at 100 degrees Celsius at sea level.",
                "questions": [
                    {
                        "id": "s-mcq",
                        "type": "mcq",
                        "text": "At what temperature does water boil?",
                        "points": 2,
                        "options": [
                            {"id": "optA", "text": "100", "isCorrect": True},
                            {"id": "optB", "text": "90", "isCorrect": False},
                        ],
                    },
                    {
                        "id": "s-mca",
                        "type": "mca",
                        "text": "Which words appear in the passage?",
                        "points": 1,
                        "options": [
                            {"id": "m1", "text": "Water", "isCorrect": True},
                            {"id": "m2", "text": "Celsius", "isCorrect": True},
                            {"id": "m3", "text": "Fahrenheit", "isCorrect": False},
                        ],
                    },
                    {
                        "id": "s-short",
                        "type": "short-text",
                        "text": "Summarize the passage",
                        "points": 1,
                    },
                ],
            },
        ],
        "settings": {"allowMultipleSubmissions": True, "showResults": True},
    }


def build_perfect_responses() -> list:
    """Responses answering every question of build_form_data() correctly."""
    return [
        {
            "questionId": "q-cat",
            "type": "categorize",
            "answers": [
                {"itemId": "item1", "selectedCategoryId": "catA"},
                {"itemId": "item2", "selectedCategoryId": "catB"},
            ],
        },
        {
            "questionId": "q-cloze",
            "type": "cloze",
            "answers": [
                {"blankId": "w1", "selectedAnswer": "blue"},
                {"blankId": "w2", "selectedAnswer": "green"},
            ],
        },
        {
            "questionId": "q-comp",
            "type": "comprehension",
            "answers": [
                {"subQuestionId": "s-mcq", "selectedOptions": ["optA"]},
                {"subQuestionId": "s-mca", "selectedOptions": ["m1", "m2"]},
                {"subQuestionId": "s-short", "textAnswer": "Water boils at 100C."},
            ],
        },
    ]


@pytest.fixture
def form_data() -> dict:
    return build_form_data()


@pytest.fixture
def sample_form(form_data) -> FormPayload:
    """Returns a valid FormPayload for testing."""
    return FormPayload.model_validate(form_data)


@pytest.fixture
def perfect_responses() -> list:
    return build_perfect_responses()


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def media_dir(tmp_path, monkeypatch):
    """Redirect uploaded images to a temporary directory."""
    path = tmp_path / "media"
    monkeypatch.setenv("MEDIA_DIR", str(path))
    return path


@pytest.fixture
def client(engine, media_dir):
    """TestClient bound to the in-memory database."""
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_form(client):
    """Create a form through the API and return its document."""
    def _create(data: dict = None, files=None, created_by: str = None) -> dict:
        fields = {"formData": json.dumps(data if data is not None else build_form_data())}
        if created_by is not None:
            fields["createdBy"] = created_by
        response = client.post("/api/forms", data=fields, files=files)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def submit(client):
    """Submit responses to a form and return the raw HTTP response."""
    def _submit(form_id: str, responses: list, name: str = "Alice", time_spent: int = 120):
        body = {"responses": responses, "timeSpent": time_spent, "name": name}
        return client.post(f"/api/forms/{form_id}/submit", json=body)

    return _submit
