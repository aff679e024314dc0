# services/assessment/scorer.py
"""Scoring utilities for the Assessment service.

Functions:
- score_choice: case-insensitive match for single-choice, true-false and text.
- score_number: numeric match after float parsing.
- score_multiple: set equality for multiple-choice.
- grade: aggregates per-question outcomes into a `QuizResult`.

Irregular learner input (missing, wrong shape, unparsable) grades as incorrect;
only authoring problems raise `ConfigurationError`.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping

from packages.common.errors import ConfigurationError
from packages.schemas.assessment import GradedAnswer, Quiz, QuizResult

log = logging.getLogger(__name__)


def score_choice(correct: Any, ans: Any) -> bool:
    """Return True when `ans` is a string equal to `correct`, ignoring case."""
    if not isinstance(ans, str) or not isinstance(correct, str):
        return False
    return ans.lower() == correct.lower()


def score_number(correct: Any, ans: Any) -> bool:
    """Return True when `ans` parses to the same float as `correct`.

    "10" and "10.0" both match "10". Booleans are not numbers here.
    """
    if isinstance(ans, bool) or not isinstance(ans, (str, int, float)):
        return False
    try:
        return float(ans) == float(correct)
    except (TypeError, ValueError):
        return False


def score_multiple(correct: Any, ans: Any) -> bool:
    """Return True when the submitted options equal the correct set.

    Order and duplicates are ignored; an empty submission is never correct.
    """
    if not isinstance(ans, (list, tuple, set)) or not all(isinstance(a, str) for a in ans):
        return False
    submitted = set(ans)
    if not submitted:
        return False
    return submitted == set(correct)


SCORERS: Dict[str, Callable[[Any, Any], bool]] = {
    "single-choice": score_choice,
    "true-false": score_choice,
    "text": score_choice,
    "number": score_number,
    "multiple-choice": score_multiple,
}


def grade(quiz: Quiz, submission: Mapping[str, Any]) -> QuizResult:
    """Grade `submission` against `quiz` and return a `QuizResult`.

    Args:
        quiz: The quiz definition; must contain at least one question.
        submission: Question id -> raw answer. Absent keys count as unanswered.

    Returns:
        The result with per-question outcomes in question order. `percentage`
        is unrounded and is 0 when the quiz carries no points.

    Raises:
        ConfigurationError: the quiz has no questions, or a question has a
            type outside the five known kinds.
    """
    if not quiz.questions:
        raise ConfigurationError(f"quiz {quiz.id!r} has no questions")

    graded: List[GradedAnswer] = []
    total = earned = 0
    for q in quiz.questions:
        scorer = SCORERS.get(q.type)
        if scorer is None:
            raise ConfigurationError(f"quiz {quiz.id!r} question {q.id!r} has unknown type {q.type!r}")
        ans = submission.get(q.id)
        ok = ans is not None and scorer(q.correct_answer, ans)
        total += q.points
        if ok:
            earned += q.points
        graded.append(GradedAnswer(question_id=q.id, answer=ans, correct=ok, points_awarded=q.points if ok else 0))

    percentage = earned / total * 100.0 if total > 0 else 0.0
    passed = percentage >= quiz.passing_score
    log.debug(f"graded quiz={quiz.id} earned={earned}/{total} passed={passed}")
    return QuizResult(
        quiz_id=quiz.id,
        total_points=total,
        earned_points=earned,
        percentage=percentage,
        passed=passed,
        retake_allowed=not passed and quiz.allow_retakes,
        answers=graded,
    )
