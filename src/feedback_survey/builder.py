"""Authoring session: edits one survey and hands it to storage on save."""

import copy
import uuid
from typing import Any, Mapping, Optional, Union

from . import questions, survey as survey_ops
from .app_logger import clear_session_id, get_logger, set_session_id
from .definition import survey_from_definition, survey_to_definition
from .errors import OperationInProgressError, PersistenceError
from .models import Question, QuestionKind, Survey
from .questions import IdFactory
from .repository.base import SurveyRepository

logger = get_logger(__name__)


class BuilderController:
    """Orchestrates question authoring for a single survey.

    Besides the survey itself the controller owns the editing state the builder UI
    needs: which question is focused and which ones are collapsed.
    """

    def __init__(
        self,
        survey: Optional[Survey] = None,
        repository: Optional[SurveyRepository] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        self.survey = survey if survey is not None else Survey()
        self.repository = repository
        self.id_factory = id_factory
        self.session_id = str(uuid.uuid4())
        self.active_question_id: Optional[str] = None
        self.collapsed_ids: set[str] = set()
        self.is_saving = False

    @classmethod
    def from_definition(
        cls,
        definition: Mapping[str, Any],
        repository: Optional[SurveyRepository] = None,
    ) -> "BuilderController":
        """Resume editing a persisted survey definition."""
        return cls(survey_from_definition(definition), repository=repository)

    @property
    def questions(self) -> list[Question]:
        return self.survey.questions

    def get_question(self, question_id: str) -> Question:
        return survey_ops.get_question(self.survey, question_id)

    # -------------------------
    # Survey metadata
    # -------------------------

    def set_title(self, title: str) -> None:
        self.survey.title = title

    def set_description(self, description: str) -> None:
        self.survey.description = description

    def set_anonymous(self, anonymous: bool) -> None:
        self.survey.anonymous_responses = anonymous

    # -------------------------
    # Question operations
    # -------------------------

    def add_question(self, kind: Union[QuestionKind, str]) -> Question:
        """Append a question and focus it for editing."""
        question = survey_ops.add_question(self.survey, kind, id_factory=self.id_factory)
        self.active_question_id = question.id
        self.collapsed_ids.discard(question.id)
        logger.debug("Added %s question %s", question.kind.value, question.id)
        return question

    def update_question(self, question_id: str, patch: Mapping[str, Any]) -> Question:
        return survey_ops.update_question(self.survey, question_id, patch)

    def duplicate_question(self, question_id: str) -> Question:
        return survey_ops.duplicate_question(self.survey, question_id, id_factory=self.id_factory)

    def remove_question(self, question_id: str) -> Question:
        removed = survey_ops.remove_question(self.survey, question_id)
        if self.active_question_id == question_id:
            self.active_question_id = None
        self.collapsed_ids.discard(question_id)
        return removed

    def reorder(self, question_id: str, new_index: int) -> Question:
        return survey_ops.reorder(self.survey, question_id, new_index)

    def move_question(self, question_id: str, over_id: str) -> Question:
        """Apply a drag-and-drop of one question onto another's slot."""
        return survey_ops.move_question(self.survey, question_id, over_id)

    # List-valued config fields (options, statements, rows, columns)

    def add_item(
        self,
        question_id: str,
        value: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> str:
        return questions.add_item(self.get_question(question_id), value, field_name)

    def update_item(
        self,
        question_id: str,
        index: int,
        value: str,
        field_name: Optional[str] = None,
    ) -> None:
        questions.update_item(self.get_question(question_id), index, value, field_name)

    def remove_item(self, question_id: str, index: int, field_name: Optional[str] = None) -> str:
        return questions.remove_item(self.get_question(question_id), index, field_name)

    # -------------------------
    # Editing state
    # -------------------------

    def set_active(self, question_id: Optional[str]) -> None:
        if question_id is not None:
            self.get_question(question_id)
        self.active_question_id = question_id

    def toggle_collapse(self, question_id: str) -> bool:
        """Flip a question's collapsed flag; returns the new value."""
        self.get_question(question_id)
        if question_id in self.collapsed_ids:
            self.collapsed_ids.remove(question_id)
            return False
        self.collapsed_ids.add(question_id)
        return True

    def is_collapsed(self, question_id: str) -> bool:
        return question_id in self.collapsed_ids

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the whole authoring session."""
        return {
            "survey": survey_to_definition(self.survey),
            "activeQuestionId": self.active_question_id,
            "collapsedIds": sorted(self.collapsed_ids),
        }

    # -------------------------
    # Persistence
    # -------------------------

    async def save(self) -> dict[str, Any]:
        """Hand the current survey to the repository and return its definition.

        Raises:
            OperationInProgressError: If a previous save has not finished
            PersistenceError: If no repository is configured or storage fails;
                the in-memory survey is left untouched and the call may be retried
        """
        if self.is_saving:
            raise OperationInProgressError("A save is already in progress")
        if self.repository is None:
            raise PersistenceError("No survey repository configured")

        definition = survey_to_definition(self.survey)
        # Edits made while awaiting do not leak into this save.
        detached = copy.deepcopy(self.survey)
        set_session_id(self.session_id)
        self.is_saving = True
        try:
            await self.repository.save(detached)
        except Exception as e:
            logger.warning("Saving survey %s failed: %s", self.survey.id, e)
            raise PersistenceError(f"Failed to save survey {self.survey.id}") from e
        else:
            logger.info(
                "Saved survey %s (%d questions)", self.survey.id, len(self.survey.questions)
            )
        finally:
            self.is_saving = False
            clear_session_id()
        return definition
