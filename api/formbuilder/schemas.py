"""
Data Schemas for Form Builder
Pydantic models for forms, questions and submitted responses.

Python attributes are snake_case; the wire format (what the client reads
and what is persisted) is camelCase, with document ids exposed as `_id`.
"""
import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionType(str, Enum):
    """Supported top-level question types."""
    CATEGORIZE = "categorize"
    CLOZE = "cloze"
    COMPREHENSION = "comprehension"


class SubQuestionType(str, Enum):
    """Question formats nested inside a comprehension question."""
    MCQ = "mcq"
    MCA = "mca"
    SHORT_TEXT = "short-text"


class ImageRef(CamelModel):
    """A stored image attached to a form or question."""
    url: Optional[str] = None
    filename: Optional[str] = None
    mimetype: Optional[str] = None
    public_id: Optional[str] = Field(None, description="Storage key used to delete the file")


# --- Categorize ---

class Category(CamelModel):
    id: str
    name: str = ""


class CategorizeItem(CamelModel):
    """An item to sort; `category_id` is its correct category."""
    id: str
    text: str = ""
    category_id: Optional[str] = None


# --- Cloze ---

class BlankWord(CamelModel):
    """A word removed from the cloze sentence, identified by `key`."""
    word: str
    position: int = 0
    key: str


class AnswerOption(CamelModel):
    """A candidate filler for the blank whose key is `word_key`."""
    id: str
    text: str = ""
    is_correct: bool = False
    word_key: Optional[str] = None


# --- Comprehension ---

class SubQuestionOption(CamelModel):
    id: str
    text: str = ""
    is_correct: bool = False


class SubQuestion(CamelModel):
    id: str
    type: SubQuestionType = SubQuestionType.MCQ
    text: str = ""
    options: List[SubQuestionOption] = Field(default_factory=list)
    points: Optional[int] = 1

    @property
    def effective_points(self) -> int:
        """Points awarded for a correct answer; unset or < 1 counts as 1."""
        if self.points is None or self.points < 1:
            return 1
        return self.points


# --- Questions ---

class QuestionBase(CamelModel):
    id: str
    question_text: str = ""
    image: Optional[ImageRef] = None


class CategorizeQuestion(QuestionBase):
    type: Literal["categorize"] = "categorize"
    categories: List[Category] = Field(default_factory=list)
    options: List[CategorizeItem] = Field(default_factory=list)
    correct_answers: Dict[str, str] = Field(
        default_factory=dict,
        description="itemId -> categoryId, consulted only for items without a categoryId",
    )

    def correct_category(self, item_id: str) -> Optional[str]:
        """
        Look up the correct category of an item.

        Args:
            item_id: Id of the item being sorted.

        Returns:
            The category id, or None when the item is unknown or has no
            correct category recorded.
        """
        for item in self.options:
            if item.id == item_id:
                return item.category_id or self.correct_answers.get(item_id)
        return None

    def has_item(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.options)


class ClozeQuestion(QuestionBase):
    type: Literal["cloze"] = "cloze"
    sentence: str = ""
    selected_words: List[BlankWord] = Field(default_factory=list)
    answer_options: List[AnswerOption] = Field(default_factory=list)

    def correct_option(self, word_key: str) -> Optional[AnswerOption]:
        """Return the option marked correct for a blank, or None."""
        for option in self.answer_options:
            if option.word_key == word_key and option.is_correct:
                return option
        return None


class ComprehensionQuestion(QuestionBase):
    type: Literal["comprehension"] = "comprehension"
    instructions: str = ""
    passage: str = ""
    questions: List[SubQuestion] = Field(default_factory=list)

    def find_sub_question(self, sub_question_id: str) -> Optional[SubQuestion]:
        for sub_question in self.questions:
            if sub_question.id == sub_question_id:
                return sub_question
        return None


Question = Annotated[
    Union[CategorizeQuestion, ClozeQuestion, ComprehensionQuestion],
    Field(discriminator="type"),
]


# --- Forms ---

class FormSettings(CamelModel):
    allow_multiple_submissions: bool = False
    show_results: bool = True
    time_limit: Optional[int] = Field(None, description="Time limit in minutes")


class FormPayload(CamelModel):
    """Editable content of a form, as sent by the editor in `formData`."""
    title: str = ""
    description: str = ""
    header_image: Optional[ImageRef] = None
    questions: List[Question] = Field(default_factory=list)
    settings: FormSettings = Field(default_factory=FormSettings)
    is_active: bool = True


class FormDocument(FormPayload):
    """A persisted form."""
    id: str = Field(..., alias="_id")
    created_by: str = "anonymous"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="questionCount")
    @property
    def question_count(self) -> int:
        return len(self.questions)

    @computed_field(alias="totalPoints")
    @property
    def total_points(self) -> int:
        total = 0
        for question in self.questions:
            if isinstance(question, ComprehensionQuestion):
                total += sum(sub.effective_points for sub in question.questions)
            else:
                total += 1
        return total


# --- Responses ---

class AnswerEntry(CamelModel):
    """
    One answer inside a question response.

    Which fields are used depends on the question type:
    categorize -> item_id/selected_category_id,
    cloze -> blank_id/selected_answer,
    comprehension -> sub_question_id/selected_options/text_answer.
    """
    item_id: Optional[str] = None
    selected_category_id: Optional[str] = None
    blank_id: Optional[str] = None
    selected_answer: Optional[str] = None
    sub_question_id: Optional[str] = None
    selected_options: List[str] = Field(default_factory=list)
    text_answer: Optional[str] = None


class QuestionResponse(CamelModel):
    question_id: Optional[str] = None
    type: Optional[QuestionType] = None
    answers: List[AnswerEntry] = Field(default_factory=list)


class SubmissionRequest(CamelModel):
    """Body of POST /api/forms/{formId}/submit."""
    responses: List[QuestionResponse] = Field(default_factory=list)
    time_spent: Optional[int] = Field(0, ge=0, description="Seconds spent filling the form")
    submitted_by: Optional[str] = None
    name: Optional[str] = None
    feedback: Optional[str] = None


class QuestionScore(CamelModel):
    """Scoring outcome of one form question."""
    question_id: str
    type: QuestionType
    status: Literal["scored", "unanswered"]
    earned: int = 0
    possible: int = 0
    unresolved: List[str] = Field(
        default_factory=list,
        description="Answer references (item, blank, sub-question ids) not found in the question",
    )


class IgnoredResponse(CamelModel):
    """A response entry that did not contribute to the score."""
    question_id: Optional[str] = None
    reason: Literal["unknown-question", "duplicate"]


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class ResponseDocument(CamelModel):
    """A persisted, scored submission."""
    id: str = Field(..., alias="_id")
    form_id: str
    responses: List[QuestionResponse] = Field(default_factory=list)
    score: int = 0
    max_score: int = 1
    submitted_at: Optional[datetime] = None
    submitted_by: str = "anonymous"
    time_spent: int = 0
    is_complete: bool = True
    feedback: Optional[str] = None
    breakdown: List[QuestionScore] = Field(default_factory=list)
    ignored: List[IgnoredResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @computed_field(alias="percentageScore")
    @property
    def percentage_score(self) -> int:
        if self.max_score == 0:
            return 0
        return int(round_half_up(self.score / self.max_score * 100))

    @computed_field(alias="timeSpentMinutes")
    @property
    def time_spent_minutes(self) -> float:
        return round_half_up(self.time_spent / 60, 2)


class ResponseAnalytics(CamelModel):
    total_responses: int = 0
    average_score: float = 0
    average_time: float = Field(0, description="Average time spent, in minutes")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
