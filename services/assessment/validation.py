"""Loading authored quizzes into validated `Quiz` models."""

from typing import Any, Mapping

from pydantic import ValidationError

from packages.common.errors import ConfigurationError
from packages.schemas.assessment import Quiz


def load_quiz(data: Mapping[str, Any]) -> Quiz:
    """Validate an authored quiz mapping.

    Args:
        data: Quiz fields as stored or submitted by an author.

    Returns:
        The validated Quiz.

    Raises:
        ConfigurationError: zero questions, an unknown question type, a
            malformed correct answer, or a choice question without options.
    """
    try:
        return Quiz.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'quiz'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"invalid quiz {data.get('id', '?')!r}: {problems}") from e
