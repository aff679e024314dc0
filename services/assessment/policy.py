"""Caller-side policy around grading: retakes and the completion trigger.

`grade` itself is stateless; attempt history lives with the caller and is
checked here before a new submission is accepted.
"""

from typing import Optional, Sequence

from packages.schemas.assessment import Quiz, QuizAttemptRecord, QuizResult
from packages.schemas.content import ProgressUpdate


class RetakeRefused(Exception):
    """A new attempt is not allowed for this learner."""


def check_retake(quiz: Quiz, previous: Sequence[QuizAttemptRecord], max_attempts: Optional[int] = None) -> None:
    """Raise `RetakeRefused` when the learner may not submit again.

    Args:
        quiz: The quiz being attempted.
        previous: The learner's completed attempts for this quiz.
        max_attempts: Optional cap on attempts; None means unlimited.
    """
    finished = [a for a in previous if a.completed_at is not None]
    if any(a.passed for a in finished):
        raise RetakeRefused("quiz already passed")
    if finished and not quiz.allow_retakes:
        raise RetakeRefused("retakes are not allowed for this quiz")
    if max_attempts is not None and len(finished) >= max_attempts:
        raise RetakeRefused(f"attempt limit of {max_attempts} reached")


def completion_for(result: QuizResult) -> Optional[ProgressUpdate]:
    """Return the progress write a passing result triggers, else None."""
    if not result.passed:
        return None
    return ProgressUpdate(completed=True, percentage=100)
