"""Question factory and mutation helpers."""

import copy
import uuid
from dataclasses import Field, fields, is_dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .app_logger import get_logger
from .errors import KindChangeError, MinimumItemsError, UnknownFieldError
from .models import Question, QuestionKind
from .question_types import coerce_kind, default_config, display_name

logger = get_logger(__name__)

IdFactory = Callable[[], str]

# Question-level patch keys; "question" is the definition name for the prompt.
QUESTION_FIELDS = {"prompt": "prompt", "question": "prompt", "required": "required"}
READ_ONLY_FIELDS = ("id", "order")

ITEM_LABELS = {
    "options": "Option",
    "statements": "Statement",
    "rows": "Row",
    "columns": "Column",
}


def new_question_id() -> str:
    return f"q_{uuid.uuid4().hex}"


def create(
    kind: Union[QuestionKind, str],
    order: int,
    id_factory: Optional[IdFactory] = None,
) -> Question:
    """Create a question of ``kind`` with its default configuration."""
    kind = coerce_kind(kind)
    question = Question(
        id=(id_factory or new_question_id)(),
        kind=kind,
        prompt=f"New {display_name(kind)} Question",
        config=default_config(kind),
        required=False,
        order=order,
    )
    logger.debug("Created %s question %s at position %d", kind.value, question.id, order)
    return question


def find_field(target: Any, key: str) -> Optional[Field]:
    """Find a dataclass field by attribute name or definition (wire) name."""
    for f in fields(target):
        if key == f.name or key == f.metadata.get("wire"):
            return f
    return None


def _resolve(target: Any, patch: Mapping[str, Any], kind: QuestionKind) -> list[tuple[str, Any]]:
    resolved = []
    for key, value in patch.items():
        f = find_field(target, key)
        if f is None:
            raise UnknownFieldError(kind.value, key)
        resolved.append((f.name, value))
    return resolved


def update(question: Question, patch: Mapping[str, Any]) -> Question:
    """Shallow-merge ``patch`` into the question or its config.

    Values are not checked against the kind's shape. Nested scale objects accept a
    mapping that is merged into the existing scale. The whole patch is resolved
    before anything is applied, so an unknown key leaves the question untouched.
    """
    question_updates: list[tuple[str, Any]] = []
    config_updates: list[tuple[str, Any]] = []
    nested_updates: list[tuple[Any, list[tuple[str, Any]]]] = []

    for key, value in patch.items():
        if key in ("kind", "type"):
            if coerce_kind(value) is not question.kind:
                raise KindChangeError(
                    f"Question {question.id} is '{question.kind.value}'; "
                    "delete and recreate it to change its kind"
                )
            continue
        if key in READ_ONLY_FIELDS:
            raise UnknownFieldError(question.kind.value, key)
        if key in QUESTION_FIELDS:
            question_updates.append((QUESTION_FIELDS[key], value))
            continue
        f = find_field(question.config, key)
        if f is None:
            raise UnknownFieldError(question.kind.value, key)
        current = getattr(question.config, f.name)
        if is_dataclass(current) and isinstance(value, Mapping):
            nested_updates.append((current, _resolve(current, value, question.kind)))
        else:
            config_updates.append((f.name, value))

    for name, value in question_updates:
        setattr(question, name, value)
    for name, value in config_updates:
        setattr(question.config, name, value)
    for target, resolved in nested_updates:
        for name, value in resolved:
            setattr(target, name, value)
    return question


def duplicate(
    question: Question,
    new_order: int,
    id_factory: Optional[IdFactory] = None,
) -> Question:
    """Copy a question with a fresh id and an independent config."""
    copied = Question(
        id=(id_factory or new_question_id)(),
        kind=question.kind,
        prompt=f"{question.prompt} (Copy)",
        config=copy.deepcopy(question.config),
        required=question.required,
        order=new_order,
    )
    logger.debug("Duplicated question %s as %s", question.id, copied.id)
    return copied


def _items(question: Question, field_name: Optional[str]) -> tuple[str, list[str]]:
    list_fields = question.config.list_fields
    if field_name is None:
        if not list_fields:
            raise UnknownFieldError(question.kind.value, "options")
        field_name = list_fields[0]
    elif field_name not in list_fields:
        raise UnknownFieldError(question.kind.value, field_name)
    return field_name, getattr(question.config, field_name)


def _check_index(items: list[str], index: int) -> None:
    if not 0 <= index < len(items):
        raise IndexError(f"Item index {index} out of range (0..{len(items) - 1})")


def add_item(
    question: Question,
    value: Optional[str] = None,
    field_name: Optional[str] = None,
) -> str:
    """Append an item to a list field; defaults to "Option N" style labels."""
    field_name, items = _items(question, field_name)
    if value is None:
        value = f"{ITEM_LABELS[field_name]} {len(items) + 1}"
    items.append(value)
    return value


def update_item(
    question: Question,
    index: int,
    value: str,
    field_name: Optional[str] = None,
) -> None:
    field_name, items = _items(question, field_name)
    _check_index(items, index)
    items[index] = value


def remove_item(question: Question, index: int, field_name: Optional[str] = None) -> str:
    """Remove an item; a list field never drops below one entry."""
    field_name, items = _items(question, field_name)
    _check_index(items, index)
    if len(items) <= 1:
        raise MinimumItemsError(question.id, field_name)
    return items.pop(index)
