"""Repository layer for the Assessment service: quizzes and attempts."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from packages.schemas.assessment import Quiz, QuizAttemptRecord, QuizResult
from . import models
from .policy import RetakeRefused
from .validation import load_quiz as validate_quiz


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


async def save_quiz(session: AsyncSession, quiz: Quiz) -> None:
    """Insert or replace a quiz and its questions (question order = list order)."""
    await session.merge(models.Quiz(
        id=quiz.id,
        content_id=quiz.content_id,
        title=quiz.title,
        description=quiz.description,
        time_limit=quiz.time_limit,
        passing_score=quiz.passing_score,
        allow_retakes=quiz.allow_retakes,
        show_correct_answers=quiz.show_correct_answers,
    ))
    await session.execute(
        delete(models.QuizQuestion)
        .where(models.QuizQuestion.quiz_id == quiz.id)
        .execution_options(synchronize_session=False)
    )
    for i, q in enumerate(quiz.questions):
        session.add(models.QuizQuestion(
            id=q.id,
            quiz_id=quiz.id,
            order_index=i,
            question=q.text,
            type=q.type,
            options=getattr(q, "options", None),
            correct_answer=q.correct_answer,
            points=q.points,
            explanation=q.explanation,
        ))
    await session.commit()


async def load_quiz(session: AsyncSession, quiz_id: str) -> Optional[Quiz]:
    """Load a quiz with its questions; None if it doesn't exist.

    Raises:
        ConfigurationError: the stored quiz is not gradable (no questions,
            unknown question type, malformed answers).
    """
    row = (await session.execute(select(models.Quiz).where(models.Quiz.id == quiz_id))).scalar_one_or_none()
    if row is None:
        return None
    questions = (await session.execute(
        select(models.QuizQuestion)
        .where(models.QuizQuestion.quiz_id == quiz_id)
        .order_by(models.QuizQuestion.order_index)
    )).scalars()
    data: Dict[str, Any] = {
        "id": row.id,
        "title": row.title,
        "description": row.description,
        "time_limit": row.time_limit,
        "passing_score": row.passing_score,
        "allow_retakes": row.allow_retakes,
        "show_correct_answers": row.show_correct_answers,
        "content_id": row.content_id,
        "questions": [
            {
                "id": q.id,
                "type": q.type,
                "text": q.question,
                "options": q.options,
                "correct_answer": q.correct_answer,
                "points": q.points,
                "explanation": q.explanation,
            }
            for q in questions
        ],
    }
    # Choice-less kinds carry no options column value.
    for q in data["questions"]:
        if q["options"] is None:
            del q["options"]
    return validate_quiz(data)


def _record(row: models.QuizAttempt) -> QuizAttemptRecord:
    return QuizAttemptRecord(
        id=row.id,
        user_id=row.user_id,
        quiz_id=row.quiz_id,
        attempt_number=row.attempt_number,
        started_at=_aware(row.started_at),
        completed_at=_aware(row.completed_at),
        score=row.score,
        passed=row.passed,
        answers=row.answers or {},
    )


async def record_attempt(
    session: AsyncSession,
    user_id: str,
    answers: Dict[str, Any],
    result: QuizResult,
    attempt_number: int,
    started_at: Optional[datetime] = None,
) -> QuizAttemptRecord:
    """Stage a graded submission in the session (the caller commits).

    Raises:
        RetakeRefused: another submission already took `attempt_number`;
            the session is rolled back.
    """
    now = datetime.now(timezone.utc)
    row = models.QuizAttempt(
        user_id=user_id,
        quiz_id=result.quiz_id,
        attempt_number=attempt_number,
        started_at=started_at or now,
        completed_at=now,
        score=result.percentage,
        passed=result.passed,
        answers=answers,
    )
    session.add(row)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise RetakeRefused(f"attempt {attempt_number} was already submitted") from e
    return _record(row)


async def list_attempts(session: AsyncSession, quiz_id: str, user_id: str) -> list[QuizAttemptRecord]:
    """List a learner's attempts for a quiz, newest first."""
    res = await session.execute(
        select(models.QuizAttempt)
        .where(models.QuizAttempt.quiz_id == quiz_id, models.QuizAttempt.user_id == user_id)
        .order_by(models.QuizAttempt.attempt_number.desc())
    )
    return [_record(r) for r in res.scalars()]
