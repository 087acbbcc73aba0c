"""Survey-level question operations.

Every mutation leaves ``order`` values dense and zero-based, matching list position.
"""

from typing import Any, Mapping, Optional, Union

from . import questions
from .app_logger import get_logger
from .errors import QuestionNotFoundError
from .models import Question, QuestionKind, Survey
from .questions import IdFactory

logger = get_logger(__name__)


def index_of(survey: Survey, question_id: str) -> int:
    for index, question in enumerate(survey.questions):
        if question.id == question_id:
            return index
    raise QuestionNotFoundError(question_id)


def get_question(survey: Survey, question_id: str) -> Question:
    return survey.questions[index_of(survey, question_id)]


def renumber(survey: Survey) -> None:
    for index, question in enumerate(survey.questions):
        question.order = index


def add_question(
    survey: Survey,
    kind: Union[QuestionKind, str],
    id_factory: Optional[IdFactory] = None,
) -> Question:
    """Append a new default question of ``kind``."""
    question = questions.create(kind, order=len(survey.questions), id_factory=id_factory)
    survey.questions.append(question)
    return question


def remove_question(survey: Survey, question_id: str) -> Question:
    removed = survey.questions.pop(index_of(survey, question_id))
    renumber(survey)
    logger.debug("Removed question %s from survey %s", question_id, survey.id)
    return removed


def duplicate_question(
    survey: Survey,
    question_id: str,
    id_factory: Optional[IdFactory] = None,
) -> Question:
    """Append a copy of a question at the end of the survey."""
    original = get_question(survey, question_id)
    copied = questions.duplicate(original, new_order=len(survey.questions), id_factory=id_factory)
    survey.questions.append(copied)
    return copied


def reorder(survey: Survey, question_id: str, new_index: int) -> Question:
    """Move a question to ``new_index`` (clamped to the list bounds) and renumber."""
    question = survey.questions.pop(index_of(survey, question_id))
    new_index = max(0, min(new_index, len(survey.questions)))
    survey.questions.insert(new_index, question)
    renumber(survey)
    return question


def move_question(survey: Survey, question_id: str, over_id: str) -> Question:
    """Drop ``question_id`` onto the position currently held by ``over_id``."""
    target = index_of(survey, over_id)
    if question_id == over_id:
        return survey.questions[target]
    return reorder(survey, question_id, target)


def update_question(survey: Survey, question_id: str, patch: Mapping[str, Any]) -> Question:
    return questions.update(get_question(survey, question_id), patch)
