"""
Scoring Service
Computes the score of a submitted response against its form definition.

Categorize and cloze questions are all-or-nothing and worth 1 point;
comprehension questions add up the points of each correctly answered
sub-question. Scoring never raises: references that cannot be resolved
are reported on the result instead.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from formbuilder.schemas import (
    AnswerEntry,
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    IgnoredResponse,
    QuestionResponse,
    QuestionScore,
    QuestionType,
    SubQuestion,
    SubQuestionType,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoreReport:
    """Result of scoring one response."""
    score: int
    max_score: int
    questions: List[QuestionScore] = field(default_factory=list)
    ignored: List[IgnoredResponse] = field(default_factory=list)


def question_points(question) -> int:
    """Maximum points a question can award."""
    if isinstance(question, ComprehensionQuestion):
        return sum(sub.effective_points for sub in question.questions)
    return 1


def calculate_max_score(questions: Sequence) -> int:
    """
    Sum the possible points of every question.

    Floored at 1 so percentage calculations never divide by zero.
    """
    return max(sum(question_points(question) for question in questions), 1)


def _all_or_nothing(correct_flags: List[bool]) -> int:
    return 1 if correct_flags and all(correct_flags) else 0


def score_categorize(question: CategorizeQuestion, answers: Iterable[AnswerEntry]) -> QuestionScore:
    """Award 1 point only when every submitted item is in its correct category."""
    flags: List[bool] = []
    unresolved: List[str] = []
    for answer in answers:
        if not question.has_item(answer.item_id):
            unresolved.append(answer.item_id or "")
            flags.append(False)
            continue
        expected = question.correct_category(answer.item_id)
        flags.append(expected is not None and expected == answer.selected_category_id)

    return QuestionScore(
        question_id=question.id,
        type=QuestionType.CATEGORIZE,
        status="scored",
        earned=_all_or_nothing(flags),
        possible=1,
        unresolved=unresolved,
    )


def score_cloze(question: ClozeQuestion, answers: Iterable[AnswerEntry]) -> QuestionScore:
    """Award 1 point only when every answered blank holds its correct text (case-sensitive)."""
    flags: List[bool] = []
    unresolved: List[str] = []
    for answer in answers:
        correct = question.correct_option(answer.blank_id)
        if correct is None:
            unresolved.append(answer.blank_id or "")
            flags.append(False)
            continue
        flags.append(correct.text == answer.selected_answer)

    return QuestionScore(
        question_id=question.id,
        type=QuestionType.CLOZE,
        status="scored",
        earned=_all_or_nothing(flags),
        possible=1,
        unresolved=unresolved,
    )


def score_sub_question(sub_question: SubQuestion, answer: AnswerEntry) -> int:
    """
    Score one comprehension sub-question.

    Args:
        sub_question: The sub-question definition.
        answer: The submitted answer for it.

    Returns:
        The sub-question's effective points when correct, else 0.
        Short-text answers always earn full points (graded manually later).
    """
    points = sub_question.effective_points

    if sub_question.type == SubQuestionType.MCQ:
        if not answer.selected_options:
            return 0
        selected_id = answer.selected_options[0]
        for option in sub_question.options:
            if option.id == selected_id:
                return points if option.is_correct else 0
        return 0

    if sub_question.type == SubQuestionType.MCA:
        correct_ids = {option.id for option in sub_question.options if option.is_correct}
        return points if set(answer.selected_options) == correct_ids else 0

    if sub_question.type == SubQuestionType.SHORT_TEXT:
        return points

    return 0


def score_comprehension(question: ComprehensionQuestion, answers: Iterable[AnswerEntry]) -> QuestionScore:
    """Sum the points of each correctly answered sub-question."""
    earned = 0
    unresolved: List[str] = []
    scored_ids = set()
    for answer in answers:
        sub_question = question.find_sub_question(answer.sub_question_id)
        if sub_question is None:
            unresolved.append(answer.sub_question_id or "")
            continue
        # a sub-question answered twice only counts once
        if sub_question.id in scored_ids:
            continue
        scored_ids.add(sub_question.id)
        earned += score_sub_question(sub_question, answer)

    return QuestionScore(
        question_id=question.id,
        type=QuestionType.COMPREHENSION,
        status="scored",
        earned=earned,
        possible=question_points(question),
        unresolved=unresolved,
    )


def _score_question(question, answers: List[AnswerEntry]) -> QuestionScore:
    if isinstance(question, CategorizeQuestion):
        return score_categorize(question, answers)
    if isinstance(question, ClozeQuestion):
        return score_cloze(question, answers)
    return score_comprehension(question, answers)


def score_submission(questions: Sequence, responses: Sequence[QuestionResponse]) -> ScoreReport:
    """
    Score a full submission against a form's questions.

    Args:
        questions: The form's questions.
        responses: One entry per answered question.

    Returns:
        ScoreReport with the total score, the max score, one outcome per
        form question and the response entries that were ignored.
    """
    by_id: Dict[str, QuestionResponse] = {}
    ignored: List[IgnoredResponse] = []
    known_ids = {question.id for question in questions}

    for response in responses:
        if response.question_id not in known_ids:
            ignored.append(IgnoredResponse(question_id=response.question_id, reason="unknown-question"))
        elif response.question_id in by_id:
            ignored.append(IgnoredResponse(question_id=response.question_id, reason="duplicate"))
        else:
            by_id[response.question_id] = response

    outcomes: List[QuestionScore] = []
    for question in questions:
        response = by_id.get(question.id)
        if response is None:
            outcomes.append(
                QuestionScore(
                    question_id=question.id,
                    type=QuestionType(question.type),
                    status="unanswered",
                    earned=0,
                    possible=question_points(question),
                )
            )
            continue
        outcomes.append(_score_question(question, response.answers))

    report = ScoreReport(
        score=sum(outcome.earned for outcome in outcomes),
        max_score=calculate_max_score(questions),
        questions=outcomes,
        ignored=ignored,
    )
    for outcome in outcomes:
        logger.debug(
            "Question %s (%s): %s/%s %s",
            outcome.question_id,
            outcome.type.value,
            outcome.earned,
            outcome.possible,
            outcome.status,
        )
    return report
