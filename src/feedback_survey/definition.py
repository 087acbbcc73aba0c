"""Conversion between domain models and their persisted JSON shapes.

Survey definitions flatten each question's config into the question object using
camelCase keys (``allowMultiple``, ``maxLength``...). Submission payloads are what the
collection service receives.
"""

import copy
from dataclasses import fields, is_dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import DefinitionError, SurveyError
from .models import (
    Question,
    QuestionKind,
    RatingScale,
    ResponseEntry,
    Submission,
    Survey,
)
from .question_types import coerce_kind, default_config
from .questions import find_field


class QuestionDefinition(BaseModel):
    """A question as stored; kind-specific fields travel as extras."""
    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    question: str = ""
    required: bool = False
    order: Optional[int] = None


class SurveyDefinition(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    title: str = "Untitled Survey"
    description: str = ""
    anonymous_responses: bool = Field(default=True, alias="anonymousResponses")
    questions: list[QuestionDefinition] = Field(default_factory=list)


class ResponsePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId")
    answer: Any = None
    type: str


class SubmissionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    survey_id: str = Field(alias="surveyId")
    responses: list[ResponsePayload]
    anonymous: bool = True
    completed_at: datetime = Field(alias="completedAt")
    time_spent: int = Field(alias="timeSpent")


# -------------------------
# Survey definitions
# -------------------------

def config_to_dict(config: Any) -> dict[str, Any]:
    """Flatten a config dataclass into definition keys."""
    data: dict[str, Any] = {}
    for f in fields(config):
        value = getattr(config, f.name)
        key = f.metadata.get("wire", f.name)
        data[key] = config_to_dict(value) if is_dataclass(value) else copy.deepcopy(value)
    return data


def question_to_definition(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "type": question.kind.value,
        "question": question.prompt,
        "required": question.required,
        "order": question.order,
        **config_to_dict(question.config),
    }


def survey_to_definition(survey: Survey) -> dict[str, Any]:
    return {
        "id": survey.id,
        "title": survey.title,
        "description": survey.description,
        "anonymousResponses": survey.anonymous_responses,
        "questions": [question_to_definition(q) for q in survey.questions],
    }


def _int_keys(labels: Mapping[Any, str]) -> dict[int, str]:
    # JSON object keys arrive as strings.
    try:
        return {int(key): value for key, value in labels.items()}
    except (TypeError, ValueError) as e:
        raise DefinitionError(f"Rating labels must be keyed by scale value: {e}") from e


def _apply_nested(target: Any, data: Any, question_id: str) -> None:
    if not isinstance(data, Mapping):
        raise DefinitionError(f"Question {question_id}: expected an object, got {data!r}")
    for key, value in data.items():
        f = find_field(target, key)
        if f is None:
            continue
        if isinstance(target, RatingScale) and f.name == "labels":
            if not isinstance(value, Mapping):
                raise DefinitionError(f"Question {question_id}: rating labels must be an object")
            value = _int_keys(value)
        setattr(target, f.name, copy.deepcopy(value))


def question_from_definition(data: QuestionDefinition, order: int) -> Question:
    """Build a question, filling any missing kind-specific field from defaults."""
    try:
        kind = coerce_kind(data.type)
    except SurveyError as e:
        raise DefinitionError(f"Question {data.id}: {e}") from e

    config = default_config(kind)
    extras = dict(data.model_extra or {})

    # Older definitions store yes/no questions as a two-item options list.
    if kind is QuestionKind.DICHOTOMOUS and "options" in extras:
        options = extras.pop("options") or []
        if len(options) >= 2:
            extras.setdefault("yesLabel", options[0])
            extras.setdefault("noLabel", options[1])

    for key, value in extras.items():
        f = find_field(config, key)
        if f is None:
            continue
        current = getattr(config, f.name)
        if is_dataclass(current):
            _apply_nested(current, value, data.id)
        else:
            setattr(config, f.name, copy.deepcopy(value))

    for name in config.list_fields:
        items = getattr(config, name)
        if not isinstance(items, list) or not items:
            raise DefinitionError(f"Question {data.id}: '{name}' needs at least one item")

    return Question(
        id=data.id,
        kind=kind,
        prompt=data.question,
        config=config,
        required=data.required,
        order=order,
    )


def survey_from_definition(data: Mapping[str, Any]) -> Survey:
    """Parse a persisted definition. Questions are ordered by ``order``, then position."""
    try:
        parsed = SurveyDefinition.model_validate(data)
    except PydanticValidationError as e:
        raise DefinitionError(f"Invalid survey definition: {e}") from e

    ids = [q.id for q in parsed.questions]
    if len(ids) != len(set(ids)):
        raise DefinitionError("Survey definition contains duplicate question ids")

    ranked = sorted(
        enumerate(parsed.questions),
        key=lambda item: (item[1].order if item[1].order is not None else item[0], item[0]),
    )
    questions = [question_from_definition(q, order) for order, (_, q) in enumerate(ranked)]

    survey = Survey(
        title=parsed.title,
        description=parsed.description,
        questions=questions,
        anonymous_responses=parsed.anonymous_responses,
    )
    if parsed.id:
        survey.id = parsed.id
    return survey


# -------------------------
# Submissions
# -------------------------

def submission_to_payload(submission: Submission) -> dict[str, Any]:
    payload = SubmissionPayload(
        survey_id=submission.survey_id,
        responses=[
            ResponsePayload(
                question_id=entry.question_id,
                answer=copy.deepcopy(entry.answer),
                type=entry.kind.value,
            )
            for entry in submission.responses
        ],
        anonymous=submission.anonymous,
        completed_at=submission.completed_at,
        time_spent=submission.time_spent_seconds,
    )
    return payload.model_dump(mode="json", by_alias=True)


def submission_from_payload(data: Mapping[str, Any]) -> Submission:
    try:
        parsed = SubmissionPayload.model_validate(data)
        responses = tuple(
            ResponseEntry(question_id=r.question_id, answer=r.answer, kind=QuestionKind(r.type))
            for r in parsed.responses
        )
    except (PydanticValidationError, ValueError) as e:
        raise DefinitionError(f"Invalid submission payload: {e}") from e
    return Submission(
        survey_id=parsed.survey_id,
        responses=responses,
        completed_at=parsed.completed_at,
        time_spent_seconds=parsed.time_spent,
        anonymous=parsed.anonymous,
    )
