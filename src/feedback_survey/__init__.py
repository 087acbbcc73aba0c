"""Feedback survey core: question type system, survey builder and response runtime."""

from .builder import BuilderController
from .errors import (
    DefinitionError,
    KindChangeError,
    MinimumItemsError,
    OperationInProgressError,
    PersistenceError,
    QuestionNotFoundError,
    SessionCompletedError,
    SubmissionFailedError,
    SurveyError,
    SurveyNotFoundError,
    UnknownFieldError,
    UnsupportedKindError,
    ValidationError,
)
from .models import Question, QuestionKind, RuntimeState, Submission, Survey
from .question_types import default_config, list_kinds
from .state_machine import ResponseRuntime
from .validation import validate, validate_all

__all__ = [
    "BuilderController",
    "ResponseRuntime",
    "Question",
    "QuestionKind",
    "RuntimeState",
    "Submission",
    "Survey",
    "default_config",
    "list_kinds",
    "validate",
    "validate_all",
    "SurveyError",
    "UnsupportedKindError",
    "QuestionNotFoundError",
    "SurveyNotFoundError",
    "MinimumItemsError",
    "UnknownFieldError",
    "KindChangeError",
    "DefinitionError",
    "PersistenceError",
    "SubmissionFailedError",
    "OperationInProgressError",
    "SessionCompletedError",
    "ValidationError",
]
