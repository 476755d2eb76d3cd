"""
Overall score for a feedback summary record.

Two aggregation policies exist and are not interchangeable when questions
have different maximum scores:

- MEAN: plain mean of the ten per-question percentages.
- WEIGHTED: recover each question's maximum from score/percentage and
  divide total score by total maximum.

The console uses the policy named by SCORE_POLICY; both stay available.
"""
from enum import Enum

from feedback_console import config
from feedback_console.models import QuestionScore


class ScorePolicy(str, Enum):
    MEAN = "mean"
    WEIGHTED = "weighted"


def _question_values(question_scores):
    """Yield (score, percentage) for Q1..Q10; missing keys count as zero."""
    for key in config.QUESTION_KEYS:
        entry = question_scores.get(key)
        if entry is None:
            yield 0.0, 0.0
        elif isinstance(entry, QuestionScore):
            yield float(entry.score), float(entry.percentage)
        else:
            yield float(entry.get('score') or 0), float(entry.get('percentage') or 0)


def mean_percentage(question_scores):
    total = sum(percentage for _, percentage in _question_values(question_scores))
    return f"{total / len(config.QUESTION_KEYS):.2f}"


def weighted_percentage(question_scores):
    total_score = 0.0
    total_max = 0.0
    for score, percentage in _question_values(question_scores):
        total_score += score
        if percentage != 0:
            total_max += score / (percentage / 100)
    if total_max == 0:
        return "0.00"
    return f"{total_score / total_max * 100:.2f}"


_POLICIES = {
    ScorePolicy.MEAN: mean_percentage,
    ScorePolicy.WEIGHTED: weighted_percentage,
}


def overall_percentage(question_scores, policy=None):
    """Overall percentage as a two-decimal string.

    Accepts a mapping of QuestionScore models or plain dicts. The input is
    never modified.
    """
    policy = ScorePolicy(policy or config.SCORE_POLICY)
    return _POLICIES[policy](question_scores)
