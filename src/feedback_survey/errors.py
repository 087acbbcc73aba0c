"""Error taxonomy for the survey core."""

from dataclasses import dataclass


class SurveyError(Exception):
    """Base class for all survey core errors."""


class UnsupportedKindError(SurveyError):
    """Raised when an unknown question kind is requested."""

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Unsupported question kind: {kind!r}")


class QuestionNotFoundError(SurveyError):
    """Raised when a question id does not exist in the survey."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question not found: {question_id}")


class SurveyNotFoundError(SurveyError):
    """Raised when a stored survey cannot be found."""

    def __init__(self, survey_id: str):
        self.survey_id = survey_id
        super().__init__(f"Survey not found: {survey_id}")


class MinimumItemsError(SurveyError):
    """Raised when removing the last option/statement of a list-based question."""

    def __init__(self, question_id: str, field: str):
        self.question_id = question_id
        self.field = field
        super().__init__(f"Question {question_id} must keep at least one item in '{field}'")


class UnknownFieldError(SurveyError):
    """Raised when a patch or item helper names a field the kind cannot edit."""

    def __init__(self, kind: str, field: str):
        self.kind = kind
        self.field = field
        super().__init__(f"Question kind '{kind}' has no editable field '{field}'")


class KindChangeError(SurveyError):
    """Raised when a patch attempts to change a question's kind."""


class DefinitionError(SurveyError):
    """Raised when a persisted survey definition cannot be parsed."""


class PersistenceError(SurveyError):
    """Raised when saving a survey definition fails. Safe to retry."""


class SubmissionFailedError(SurveyError):
    """Raised when handing a submission to the collection service fails. Safe to retry."""


class OperationInProgressError(SurveyError):
    """Raised when save() or submit() is called while a previous call is outstanding."""


class SessionCompletedError(SurveyError):
    """Raised when a completed response session receives further input."""


@dataclass(frozen=True)
class ValidationError:
    """A recoverable, question-scoped validation failure.

    Never raised: the runtime collects these into inline messages for the respondent.
    """
    question_id: str
    message: str
