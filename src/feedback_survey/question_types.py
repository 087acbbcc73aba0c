"""Catalog of supported question kinds."""

from dataclasses import dataclass
from typing import Union

from .errors import UnsupportedKindError
from .models import (
    DichotomousConfig,
    DropdownConfig,
    LikertScaleConfig,
    MatrixConfig,
    MultipleChoiceConfig,
    OpenEndedConfig,
    OpinionScaleConfig,
    QuestionConfig,
    QuestionKind,
    RankOrderConfig,
    RatingConfig,
    SliderConfig,
)


@dataclass(frozen=True)
class QuestionTypeInfo:
    """Display metadata for one question kind."""
    kind: QuestionKind
    display_name: str
    icon: str
    description: str
    config_class: type


_REGISTRY: dict[QuestionKind, QuestionTypeInfo] = {
    info.kind: info
    for info in (
        QuestionTypeInfo(
            QuestionKind.MULTIPLE_CHOICE, "Multiple Choice", "☑️",
            "Single or multiple selection from predefined options", MultipleChoiceConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.LIKERT_SCALE, "Likert Scale", "📊",
            "Agreement scale for multiple statements", LikertScaleConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.RATING, "Rating Scale", "⭐",
            "Star or numeric rating system", RatingConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.SLIDER, "Slider", "🎚️",
            "Continuous scale with drag control", SliderConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.OPEN_ENDED, "Open Ended", "📝",
            "Free text response field", OpenEndedConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.DROPDOWN, "Dropdown", "📋",
            "Select from dropdown menu", DropdownConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.MATRIX, "Matrix", "🔢",
            "Grid of questions and answer options", MatrixConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.RANK_ORDER, "Rank Order", "🔢",
            "Drag to rank options in order of preference", RankOrderConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.DICHOTOMOUS, "Yes/No", "✅",
            "Simple Yes/No or True/False question", DichotomousConfig,
        ),
        QuestionTypeInfo(
            QuestionKind.OPINION_SCALE, "Opinion Scale", "💭",
            "Numeric scale with custom labels", OpinionScaleConfig,
        ),
    )
}


def coerce_kind(kind: Union[QuestionKind, str]) -> QuestionKind:
    """Resolve a kind or its wire name, rejecting anything unknown."""
    if isinstance(kind, QuestionKind):
        return kind
    try:
        return QuestionKind(kind)
    except ValueError:
        raise UnsupportedKindError(kind) from None


def list_kinds() -> list[QuestionTypeInfo]:
    """All kinds in add-question menu order."""
    return [_REGISTRY[kind] for kind in QuestionKind]


def get_type(kind: Union[QuestionKind, str]) -> QuestionTypeInfo:
    return _REGISTRY[coerce_kind(kind)]


def display_name(kind: Union[QuestionKind, str]) -> str:
    return get_type(kind).display_name


def default_config(kind: Union[QuestionKind, str]) -> QuestionConfig:
    """Return a new default configuration for ``kind``.

    Every call builds a fresh instance, so questions of the same kind never share
    option lists or scale objects.
    """
    return get_type(kind).config_class()
