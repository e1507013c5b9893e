"""
Analytics Service
Summarizes the scored responses of a form.
"""
from typing import Iterable

from formbuilder.schemas import ResponseAnalytics, round_half_up


def percentage_score(score: float, max_score: float) -> int:
    """Score as a whole percentage (half-up rounding); 0 when max_score is 0."""
    if not max_score:
        return 0
    return int(round_half_up(score / max_score * 100))


def summarize_responses(responses: Iterable) -> ResponseAnalytics:
    """
    Reduce responses to average percentage score and average time.

    Args:
        responses: Objects exposing `score`, `max_score` and `time_spent`
            (seconds), e.g. ResponseDocument.

    Returns:
        ResponseAnalytics; both averages are 0 when there are no responses.
    """
    total = 0
    score_sum = 0.0
    minutes_sum = 0.0
    for response in responses:
        total += 1
        score_sum += percentage_score(response.score, response.max_score)
        minutes_sum += (response.time_spent or 0) / 60

    if total == 0:
        return ResponseAnalytics(total_responses=0, average_score=0, average_time=0)

    return ResponseAnalytics(
        total_responses=total,
        average_score=round_half_up(score_sum / total, 2),
        average_time=round_half_up(minutes_sum / total, 2),
    )
