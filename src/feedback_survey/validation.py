"""Required-answer validation for respondent answers."""

from collections.abc import Mapping, Sized
from typing import Optional

from .models import Answer, LikertScaleConfig, MatrixConfig, Question, Survey

REQUIRED_MESSAGE = "This question is required."
RATE_ALL_STATEMENTS_MESSAGE = "Please rate all statements."
ANSWER_ALL_ROWS_MESSAGE = "Please answer every row."


def is_blank(value: object) -> bool:
    """Absent, empty string, or empty collection. Zero is a real answer."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def _missing_keys(answer: Answer, keys: list[str]) -> list[str]:
    given = answer if isinstance(answer, Mapping) else {}
    return [key for key in keys if is_blank(given.get(key))]


def validate(question: Question, answer: Answer) -> Optional[str]:
    """Return an error message, or None when the answer is acceptable."""
    if not question.required:
        return None

    config = question.config
    if isinstance(config, LikertScaleConfig):
        if _missing_keys(answer, config.statements):
            return RATE_ALL_STATEMENTS_MESSAGE
        return None
    if isinstance(config, MatrixConfig):
        if _missing_keys(answer, config.rows):
            return ANSWER_ALL_ROWS_MESSAGE
        return None

    if is_blank(answer):
        return REQUIRED_MESSAGE
    return None


def validate_all(survey: Survey, answers: Mapping[str, Answer]) -> dict[str, str]:
    """Validate every question; maps question id to message for failures only."""
    errors: dict[str, str] = {}
    for question in survey.questions:
        error = validate(question, answers.get(question.id))
        if error:
            errors[question.id] = error
    return errors
