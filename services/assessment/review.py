"""What a learner may see of a quiz before and after submitting it."""

from typing import List

from packages.schemas.assessment import PublicQuestion, Quiz, QuizResult, ReviewItem


def public_questions(quiz: Quiz) -> List[PublicQuestion]:
    """Return the questions without correct answers or explanations."""
    return [
        PublicQuestion(id=q.id, type=q.type, text=q.text, options=getattr(q, "options", None), points=q.points)
        for q in quiz.questions
    ]


def build_review(quiz: Quiz, result: QuizResult) -> List[ReviewItem]:
    """Pair each graded answer with its question for the results screen.

    Correct answers and explanations are disclosed only when
    `quiz.show_correct_answers` is set.
    """
    reveal = quiz.show_correct_answers
    by_id = {q.id: q for q in quiz.questions}
    items = []
    for g in result.answers:
        q = by_id[g.question_id]
        items.append(ReviewItem(
            question_id=q.id,
            text=q.text,
            answer=g.answer,
            correct=g.correct,
            points_awarded=g.points_awarded,
            correct_answer=q.correct_answer if reveal else None,
            explanation=q.explanation if reveal else None,
        ))
    return items
