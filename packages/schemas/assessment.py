"""Assessment schemas for quizzes, typed questions, attempts, and grading results."""

import math
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, Field, field_validator, model_validator

QuestionType = Literal["single-choice", "multiple-choice", "true-false", "number", "text"]
QUESTION_TYPES: tuple[str, ...] = get_args(QuestionType)


def _as_text(v: Any) -> Any:
    """Coerce JSON booleans and numbers authored as correct answers to strings."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    return v


class _QuestionBase(BaseModel):
    """Fields shared by every question kind."""
    id: str
    text: str = Field(min_length=1)
    points: int = Field(default=1, ge=1)
    explanation: Optional[str] = None


class _ChoiceQuestion(_QuestionBase):
    """A question answered by picking among authored options."""
    options: List[str]

    @field_validator("options")
    @classmethod
    def _drop_blank_options(cls, v: List[str]) -> List[str]:
        kept = [o for o in v if o.strip()]
        if not kept:
            raise ValueError("at least one non-empty option is required")
        return kept


class SingleChoiceQuestion(_ChoiceQuestion):
    """Exactly one option is correct."""
    type: Literal["single-choice"] = "single-choice"
    correct_answer: str


class MultipleChoiceQuestion(_ChoiceQuestion):
    """A set of options is correct; order and duplicates are irrelevant."""
    type: Literal["multiple-choice"] = "multiple-choice"
    correct_answer: List[str] = Field(min_length=1)

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _wrap_scalar(cls, v: Any) -> Any:
        return [v] if isinstance(v, str) else v


class TrueFalseQuestion(_QuestionBase):
    """Answered with "true" or "false"."""
    type: Literal["true-false"] = "true-false"
    correct_answer: str

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("correct_answer")
    @classmethod
    def _true_or_false(cls, v: str) -> str:
        if v.lower() not in ("true", "false"):
            raise ValueError("true-false answer must be 'true' or 'false'")
        return v


class NumberQuestion(_QuestionBase):
    """Answered with a number, compared as floating point."""
    type: Literal["number"] = "number"
    correct_answer: str

    @field_validator("correct_answer", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("correct_answer")
    @classmethod
    def _parses(cls, v: str) -> str:
        try:
            value = float(v)
        except ValueError:
            raise ValueError(f"number answer {v!r} is not numeric") from None
        if not math.isfinite(value):
            raise ValueError(f"number answer {v!r} is not finite")
        return v


class TextQuestion(_QuestionBase):
    """Free-text answer matched case-insensitively."""
    type: Literal["text"] = "text"
    correct_answer: str


Question = Annotated[
    Union[SingleChoiceQuestion, MultipleChoiceQuestion, TrueFalseQuestion, NumberQuestion, TextQuestion],
    Field(discriminator="type"),
]


class Quiz(BaseModel):
    """An authored quiz: ordered questions plus pass, retake and review policy."""
    id: str
    title: str
    description: Optional[str] = None
    questions: List[Question] = Field(min_length=1)
    time_limit: Optional[int] = Field(default=None, ge=1)  # minutes; None = untimed
    passing_score: float = Field(default=70, ge=0, le=100)
    allow_retakes: bool = True
    show_correct_answers: bool = True
    content_id: Optional[str] = None  # owning content item, completed on pass

    @model_validator(mode="after")
    def _unique_question_ids(self) -> "Quiz":
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique within a quiz")
        return self

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


class Attempt(BaseModel):
    """A learner's submission mapping question ids to raw answers."""
    user_id: str
    answers: Dict[str, Any] = {}  # qid -> str | list[str]; anything else grades incorrect


class GradedAnswer(BaseModel):
    """Outcome for a single question of a submission."""
    question_id: str
    answer: Any = None
    correct: bool
    points_awarded: int


class QuizResult(BaseModel):
    """Aggregate grading result; `answers` mirrors question order."""
    quiz_id: str
    total_points: int
    earned_points: int
    percentage: float
    passed: bool
    retake_allowed: bool
    answers: List[GradedAnswer]


class PublicQuestion(BaseModel):
    """A question as shown while taking a quiz (no answer, no explanation)."""
    id: str
    type: QuestionType
    text: str
    options: Optional[List[str]] = None
    points: int


class ReviewItem(BaseModel):
    """A graded question as shown after submission.

    `correct_answer` and `explanation` are only populated when the quiz allows
    showing correct answers.
    """
    question_id: str
    text: str
    answer: Any = None
    correct: bool
    points_awarded: int
    correct_answer: Optional[Union[str, List[str]]] = None
    explanation: Optional[str] = None


class QuizAttemptRecord(BaseModel):
    """A persisted quiz attempt."""
    id: str
    user_id: str
    quiz_id: str
    attempt_number: int = 1
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    passed: Optional[bool] = None
    answers: Dict[str, Any] = {}


class AttemptOutcome(BaseModel):
    """Response for a submitted attempt: the result plus what the learner may see."""
    attempt_id: str
    result: QuizResult
    review: List[ReviewItem]
