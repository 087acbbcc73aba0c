"""Domain models for feedback surveys."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, ClassVar, Optional, Union


class QuestionKind(str, Enum):
    """Supported question kinds. The value is the wire ``type``."""
    MULTIPLE_CHOICE = "multiple_choice"
    LIKERT_SCALE = "likert_scale"
    RATING = "rating"
    SLIDER = "slider"
    OPEN_ENDED = "open_ended"
    DROPDOWN = "dropdown"
    MATRIX = "matrix"
    RANK_ORDER = "rank_order"
    DICHOTOMOUS = "dichotomous"
    OPINION_SCALE = "opinion_scale"


class RuntimeState(Enum):
    """States of a respondent session."""
    IN_PROGRESS = auto()
    COMPLETED = auto()


def wire(name: str, **kwargs: Any) -> Any:
    """Dataclass field whose definition key differs from the attribute name."""
    return field(metadata={"wire": name}, **kwargs)


# Nested scale shapes

@dataclass
class LikertScale:
    min: int = 1
    max: int = 5
    labels: list[str] = field(default_factory=lambda: [
        "Strongly Disagree", "Disagree", "Neutral", "Agree", "Strongly Agree",
    ])


@dataclass
class RatingScale:
    min: int = 1
    max: int = 5
    step: float = 1
    labels: dict[int, str] = field(default_factory=lambda: {1: "Poor", 5: "Excellent"})


@dataclass
class OpinionScale:
    min: int = 1
    max: int = 10
    left_label: str = wire("leftLabel", default="Strongly Disagree")
    right_label: str = wire("rightLabel", default="Strongly Agree")


# Per-kind configuration

@dataclass
class MultipleChoiceConfig:
    """Single or multiple selection from predefined options."""
    kind: ClassVar[QuestionKind] = QuestionKind.MULTIPLE_CHOICE
    list_fields: ClassVar[tuple[str, ...]] = ("options",)

    options: list[str] = field(default_factory=lambda: ["Option 1", "Option 2", "Option 3"])
    allow_multiple: bool = wire("allowMultiple", default=False)


@dataclass
class LikertScaleConfig:
    """Agreement scale applied to several statements."""
    kind: ClassVar[QuestionKind] = QuestionKind.LIKERT_SCALE
    list_fields: ClassVar[tuple[str, ...]] = ("statements",)

    statements: list[str] = field(default_factory=lambda: ["Statement 1"])
    scale: LikertScale = field(default_factory=LikertScale)


@dataclass
class RatingConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.RATING
    list_fields: ClassVar[tuple[str, ...]] = ()

    scale: RatingScale = field(default_factory=RatingScale)


@dataclass
class SliderConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.SLIDER
    list_fields: ClassVar[tuple[str, ...]] = ()

    min: int = 0
    max: int = 100
    step: float = 1
    default_value: int = wire("defaultValue", default=50)


@dataclass
class OpenEndedConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.OPEN_ENDED
    list_fields: ClassVar[tuple[str, ...]] = ()

    placeholder: str = "Enter your response..."
    max_length: int = wire("maxLength", default=500)


@dataclass
class DropdownConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.DROPDOWN
    list_fields: ClassVar[tuple[str, ...]] = ("options",)

    options: list[str] = field(default_factory=lambda: ["Option 1", "Option 2", "Option 3"])
    placeholder: str = "Select an option..."


@dataclass
class MatrixConfig:
    """Grid of row statements answered against shared columns."""
    kind: ClassVar[QuestionKind] = QuestionKind.MATRIX
    list_fields: ClassVar[tuple[str, ...]] = ("rows", "columns")

    rows: list[str] = field(default_factory=lambda: ["Row 1", "Row 2"])
    columns: list[str] = field(default_factory=lambda: ["Column 1", "Column 2", "Column 3"])


@dataclass
class RankOrderConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.RANK_ORDER
    list_fields: ClassVar[tuple[str, ...]] = ("options",)

    options: list[str] = field(
        default_factory=lambda: ["Option 1", "Option 2", "Option 3", "Option 4"]
    )


@dataclass
class DichotomousConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.DICHOTOMOUS
    list_fields: ClassVar[tuple[str, ...]] = ()

    yes_label: str = wire("yesLabel", default="Yes")
    no_label: str = wire("noLabel", default="No")


@dataclass
class OpinionScaleConfig:
    kind: ClassVar[QuestionKind] = QuestionKind.OPINION_SCALE
    list_fields: ClassVar[tuple[str, ...]] = ()

    scale: OpinionScale = field(default_factory=OpinionScale)


QuestionConfig = Union[
    MultipleChoiceConfig,
    LikertScaleConfig,
    RatingConfig,
    SliderConfig,
    OpenEndedConfig,
    DropdownConfig,
    MatrixConfig,
    RankOrderConfig,
    DichotomousConfig,
    OpinionScaleConfig,
]

# Scalar for most kinds, list for multi-select and rank order, mapping for likert and matrix.
Answer = Union[str, int, float, list[str], dict[str, Any], None]


def _new_survey_id() -> str:
    return f"survey_{uuid.uuid4().hex[:12]}"


@dataclass
class Question:
    """One question instance inside a survey."""
    id: str
    kind: QuestionKind
    prompt: str
    config: QuestionConfig
    required: bool = False
    order: int = 0

    def __post_init__(self):
        if self.config.kind is not self.kind:
            raise ValueError(
                f"Config {type(self.config).__name__} does not match kind '{self.kind.value}'"
            )

    @property
    def allows_multiple(self) -> bool:
        """True for multi-select multiple choice questions."""
        return isinstance(self.config, MultipleChoiceConfig) and self.config.allow_multiple


@dataclass
class Survey:
    """An ordered collection of questions plus survey metadata."""
    title: str = "Untitled Survey"
    description: str = ""
    questions: list[Question] = field(default_factory=list)
    anonymous_responses: bool = True
    id: str = field(default_factory=_new_survey_id)


@dataclass
class ResponseSession:
    """Runtime state for one respondent (not persisted)."""
    survey_id: str
    started_at: datetime
    answers: dict[str, Answer] = field(default_factory=dict)
    current_index: int = 0


@dataclass(frozen=True)
class ResponseEntry:
    """A single answered question inside a submission."""
    question_id: str
    answer: Answer
    kind: QuestionKind


@dataclass(frozen=True)
class Submission:
    """A respondent's completed answers, ready for the collection service."""
    survey_id: str
    responses: tuple[ResponseEntry, ...]
    completed_at: datetime
    time_spent_seconds: int
    anonymous: bool

    def answer_for(self, question_id: str) -> Optional[Answer]:
        for entry in self.responses:
            if entry.question_id == question_id:
                return entry.answer
        return None
