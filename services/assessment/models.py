"""SQLAlchemy models for the Assessment service.

Tables:
- Quiz: quiz settings, optionally owned by a content item.
- QuizQuestion: ordered questions; options and answers stored as JSON.
- QuizAttempt: a learner's submission and its grade.
"""

import uuid
from datetime import datetime
from typing import Any
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, ForeignKey, UniqueConstraint
from packages.common.db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Quiz(Base):
    """Quiz settings; questions live in `quiz_questions`."""

    __tablename__ = "quizzes"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    content_id: Mapped[str | None] = mapped_column(
        ForeignKey("content_items.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)  # minutes
    passing_score: Mapped[float] = mapped_column(Float, default=70)
    allow_retakes: Mapped[bool] = mapped_column(Boolean, default=True)
    show_correct_answers: Mapped[bool] = mapped_column(Boolean, default=True)
    questions = relationship(
        "QuizQuestion", back_populates="quiz", cascade="all, delete-orphan", order_by="QuizQuestion.order_index"
    )


class QuizQuestion(Base):
    """A question row; `type` is validated when the quiz is loaded.

    Question ids are authored per quiz, so the key is (quiz_id, id).
    """

    __tablename__ = "quiz_questions"
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_index: Mapped[int] = mapped_column(Integer)
    question: Mapped[str] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(32))
    options: Mapped[Any] = mapped_column(JSON, nullable=True)
    correct_answer: Mapped[Any] = mapped_column(JSON)
    points: Mapped[int] = mapped_column(Integer, default=1)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    quiz = relationship("Quiz", back_populates="questions")


class QuizAttempt(Base):
    """One submission of a quiz by a learner.

    `attempt_number` counts a learner's attempts per quiz from 1. It is unique
    per (user, quiz), so two submissions checked against the same history
    cannot both be stored.
    """

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", "attempt_number", name="uq_quiz_attempts_user_quiz_number"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"), index=True)
    attempt_number: Mapped[int] = mapped_column(Integer, default=1)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    passed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    answers: Mapped[Any] = mapped_column(JSON, default=dict)
