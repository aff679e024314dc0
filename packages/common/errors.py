"""Error types shared by the trailhub services."""


class ConfigurationError(ValueError):
    """Authored content is corrupt: empty quiz, unknown question type, malformed hierarchy.

    Always surfaced to the caller. Irregular learner input is never reported
    through this type; it is graded as incorrect or counted as incomplete.
    """
