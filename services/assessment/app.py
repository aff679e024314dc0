# services/assessment/app.py
"""FastAPI app for the trailhub Assessment Service:
- POST /assessment/quizzes: author or replace a quiz
- GET  /assessment/quizzes/{quiz_id}/questions: questions without answers
- POST /assessment/quizzes/{quiz_id}/attempts: grade a submission
- GET  /assessment/quizzes/{quiz_id}/attempts: a learner's attempt history
"""

import logging
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from packages.common.config import get_settings
from packages.common.db import get_session, init_db
from packages.common.errors import ConfigurationError
from packages.common.metrics import mark_graded
from packages.common.tracing import trace_middleware, xapi_event
from packages.schemas.assessment import Attempt, AttemptOutcome, PublicQuestion, Quiz, QuizAttemptRecord
from services.content.writer import ContentBlocked, ContentNotFound, write_progress
from . import repo
from .policy import RetakeRefused, check_retake, completion_for
from .review import build_review, public_questions
from .scorer import grade
from .validation import load_quiz

log = logging.getLogger(__name__)

router = APIRouter(tags=["assessment"])


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Report an ungradable quiz instead of mis-grading it."""
    log.error(f"configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _quiz_or_404(session: AsyncSession, quiz_id: str) -> Quiz:
    quiz = await repo.load_quiz(session, quiz_id)
    if quiz is None:
        raise HTTPException(404, "quiz not found")
    return quiz


@router.post("/assessment/quizzes", response_model=Quiz, status_code=201)
async def put_quiz(payload: Dict[str, Any], session: AsyncSession = Depends(get_session)) -> Quiz:
    """Validate and store an authored quiz; 422 when it cannot be graded."""
    quiz = load_quiz(payload)
    await repo.save_quiz(session, quiz)
    return quiz


@router.get("/assessment/quizzes/{quiz_id}/questions", response_model=List[PublicQuestion])
async def get_questions(quiz_id: str, session: AsyncSession = Depends(get_session)) -> List[PublicQuestion]:
    """Return the quiz's questions for taking it, without answers."""
    return public_questions(await _quiz_or_404(session, quiz_id))


@router.post("/assessment/quizzes/{quiz_id}/attempts", response_model=AttemptOutcome)
async def submit_attempt(quiz_id: str, a: Attempt, session: AsyncSession = Depends(get_session)) -> AttemptOutcome:
    """Grade a submission, store the attempt, and complete the quiz's content on pass.

    The attempt and the completion it triggers commit together. The attempt
    takes the next number in the learner's history, so a concurrent
    submission checked against the same history is refused.

    Raises:
        HTTPException: 404 unknown quiz, 409 retake not allowed,
            403 the owning content is blocked.
    """
    quiz = await _quiz_or_404(session, quiz_id)
    previous = await repo.list_attempts(session, quiz_id, a.user_id)
    try:
        check_retake(quiz, previous, get_settings().QUIZ_MAX_ATTEMPTS)
    except RetakeRefused as e:
        raise HTTPException(409, str(e))

    result = grade(quiz, a.answers)
    number = max((p.attempt_number for p in previous), default=0) + 1
    try:
        record = await repo.record_attempt(session, a.user_id, a.answers, result, number)
    except RetakeRefused as e:
        log.warning(f"concurrent submission refused user={a.user_id} quiz={quiz.id}: {e}")
        raise HTTPException(409, str(e))

    update = completion_for(result)
    committed = False
    if update is not None and quiz.content_id:
        try:
            await write_progress(session, a.user_id, quiz.content_id, update, "quiz")
            committed = True
        except ContentNotFound:
            log.warning(f"quiz={quiz.id} points at missing content={quiz.content_id}; completion not recorded")
        except ContentBlocked:
            await session.rollback()
            raise HTTPException(403, "content is blocked")
    if not committed:
        await session.commit()

    mark_graded(result.passed)
    xapi_event(a.user_id, "attempted", quiz.id, score=result.percentage, passed=result.passed)
    return AttemptOutcome(attempt_id=record.id, result=result, review=build_review(quiz, result))


@router.get("/assessment/quizzes/{quiz_id}/attempts", response_model=List[QuizAttemptRecord])
async def get_attempts(quiz_id: str, user_id: str, session: AsyncSession = Depends(get_session)) -> List[QuizAttemptRecord]:
    """Return the learner's attempts for the quiz, newest first."""
    await _quiz_or_404(session, quiz_id)
    return await repo.list_attempts(session, quiz_id, user_id)


app = FastAPI(title="trailhub Assessment Service", version="1.0.0")
app.middleware("http")(trace_middleware)
app.add_exception_handler(ConfigurationError, configuration_error_handler)
app.include_router(router)


@app.on_event("startup")
async def _init() -> None:
    """Initialize service dependencies at application startup."""
    await init_db()
