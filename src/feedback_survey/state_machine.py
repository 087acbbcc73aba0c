"""Respondent state machine: presents questions, collects answers, submits."""

import copy
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from . import survey as survey_ops
from .app_logger import clear_session_id, get_logger, set_session_id
from .definition import survey_from_definition
from .errors import (
    OperationInProgressError,
    SessionCompletedError,
    SubmissionFailedError,
    ValidationError,
)
from .models import (
    Answer,
    LikertScaleConfig,
    MatrixConfig,
    Question,
    QuestionKind,
    ResponseEntry,
    ResponseSession,
    RuntimeState,
    Submission,
    Survey,
)
from .repository.base import SubmissionRepository
from .validation import validate, validate_all

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def initial_answer(question: Question) -> Answer:
    """Empty answer of the right shape for a question's kind."""
    if question.kind in (QuestionKind.LIKERT_SCALE, QuestionKind.MATRIX):
        return {}
    if question.allows_multiple or question.kind is QuestionKind.RANK_ORDER:
        return []
    return ""


def format_time(seconds: int) -> str:
    """Format elapsed seconds as m:ss."""
    minutes, remaining = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{remaining:02d}"


class ResponseRuntime:
    """Drives one respondent through a survey.

    The runtime is ``IN_PROGRESS`` until a submit succeeds, after which it is
    ``COMPLETED`` and rejects any further input. Validation failures never raise;
    they are collected in ``validation_errors`` keyed by question id.
    """

    def __init__(
        self,
        survey: Survey,
        repository: Optional[SubmissionRepository] = None,
        survey_id: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        if not survey.questions:
            raise ValueError(f"Survey {survey.id} has no questions")

        self.survey = survey
        self.repository = repository
        self.clock = clock or utc_now
        self.session_id = str(uuid.uuid4())
        self.state = RuntimeState.IN_PROGRESS
        self.session: Optional[ResponseSession] = ResponseSession(
            survey_id=survey_id or survey.id,
            started_at=self.clock(),
            answers={q.id: initial_answer(q) for q in survey.questions},
        )
        self.validation_errors: dict[str, str] = {}
        self.submission: Optional[Submission] = None
        self.is_submitting = False

    @classmethod
    def load(
        cls,
        definition: Mapping[str, Any],
        repository: Optional[SubmissionRepository] = None,
        survey_id: Optional[str] = None,
        clock: Optional[Clock] = None,
    ) -> "ResponseRuntime":
        """Open a respondent session from a persisted survey definition."""
        return cls(survey_from_definition(definition), repository, survey_id, clock)

    # -------------------------
    # Read-only views
    # -------------------------

    def _active_session(self) -> ResponseSession:
        if self.state is RuntimeState.COMPLETED or self.session is None:
            raise SessionCompletedError(f"Survey {self.survey.id} has already been submitted")
        return self.session

    @property
    def survey_id(self) -> str:
        if self.submission is not None:
            return self.submission.survey_id
        return self._active_session().survey_id

    @property
    def is_completed(self) -> bool:
        return self.state is RuntimeState.COMPLETED

    @property
    def current_index(self) -> int:
        return self._active_session().current_index

    @property
    def current_question(self) -> Question:
        return self.survey.questions[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.survey.questions) - 1

    @property
    def answers(self) -> dict[str, Answer]:
        return dict(self._active_session().answers)

    @property
    def errors(self) -> list[ValidationError]:
        return [ValidationError(qid, message) for qid, message in self.validation_errors.items()]

    @property
    def progress(self) -> float:
        """Percentage of the survey reached, counting the current question."""
        if self.is_completed:
            return 100.0
        return (self.current_index + 1) / len(self.survey.questions) * 100

    @property
    def time_spent(self) -> int:
        """Whole seconds since the session started."""
        if self.submission is not None:
            return self.submission.time_spent_seconds
        return self._elapsed(self.clock())

    def _elapsed(self, now: datetime) -> int:
        started_at = self._active_session().started_at
        return max(0, int((now - started_at).total_seconds()))

    # -------------------------
    # Transitions
    # -------------------------

    def answer(self, question_id: str, value: Answer, sub_key: Optional[str] = None) -> None:
        """Record an answer.

        ``sub_key`` addresses a statement of a likert question or a row of a matrix.
        Multi-select answers are stored as a de-duplicated list in option order.
        """
        session = self._active_session()
        question = survey_ops.get_question(self.survey, question_id)

        if sub_key is not None:
            if not isinstance(question.config, (LikertScaleConfig, MatrixConfig)):
                raise ValueError(
                    f"Question {question_id} ({question.kind.value}) has no sub-answers"
                )
            current = session.answers.get(question_id)
            merged = dict(current) if isinstance(current, Mapping) else {}
            merged[sub_key] = value
            session.answers[question_id] = merged
        elif question.allows_multiple:
            session.answers[question_id] = self._selection(question, value)
        else:
            session.answers[question_id] = value

        self.validation_errors.pop(question_id, None)

    def _selection(self, question: Question, value: Any) -> list[str]:
        if value is None or value == "":
            chosen: Iterable[str] = []
        elif isinstance(value, str):
            chosen = [value]
        else:
            chosen = value
        chosen = list(dict.fromkeys(chosen))
        options = question.config.options
        return [o for o in options if o in chosen] + [c for c in chosen if c not in options]

    def toggle_option(self, question_id: str, option: str, selected: bool = True) -> None:
        """Check or uncheck one option of a multi-select question."""
        question = survey_ops.get_question(self.survey, question_id)
        if not question.allows_multiple:
            raise ValueError(f"Question {question_id} does not allow multiple selections")
        current = self._active_session().answers.get(question_id) or []
        if selected:
            updated = list(current) + [option]
        else:
            updated = [o for o in current if o != option]
        self.answer(question_id, updated)

    def next(self) -> Optional[str]:
        """Validate the current question and advance.

        Returns the validation message when the respondent has to stay put.
        """
        session = self._active_session()
        question = self.current_question
        error = validate(question, session.answers.get(question.id))
        if error:
            self.validation_errors[question.id] = error
            return error
        if not self.is_last:
            session.current_index += 1
        return None

    def previous(self) -> int:
        """Step back one question. Never validates."""
        session = self._active_session()
        if session.current_index > 0:
            session.current_index -= 1
        return session.current_index

    def build_submission(self) -> Submission:
        """Snapshot the current answers. Timestamps are taken at call time."""
        session = self._active_session()
        now = self.clock()
        return Submission(
            survey_id=session.survey_id,
            responses=tuple(
                ResponseEntry(
                    question_id=q.id,
                    answer=copy.deepcopy(session.answers.get(q.id, initial_answer(q))),
                    kind=q.kind,
                )
                for q in self.survey.questions
            ),
            completed_at=now,
            time_spent_seconds=self._elapsed(now),
            anonymous=self.survey.anonymous_responses,
        )

    async def submit(self) -> Optional[Submission]:
        """Validate everything and hand the submission to the repository.

        Returns None (and jumps to the first failing question) when validation fails.

        Raises:
            OperationInProgressError: If a previous submit has not finished
            SubmissionFailedError: If the repository fails; answers are kept and the
                call may be retried
        """
        session = self._active_session()
        if self.is_submitting:
            raise OperationInProgressError("A submission is already in progress")

        set_session_id(self.session_id)
        try:
            return await self._submit(session)
        finally:
            clear_session_id()

    async def _submit(self, session: ResponseSession) -> Optional[Submission]:
        errors = validate_all(self.survey, session.answers)
        if errors:
            self.validation_errors = errors
            for index, question in enumerate(self.survey.questions):
                if question.id in errors:
                    session.current_index = index
                    break
            logger.info(
                "Submission for survey %s blocked by %d validation error(s)",
                session.survey_id,
                len(errors),
            )
            return None

        submission = self.build_submission()
        if self.repository is not None:
            self.is_submitting = True
            try:
                await self.repository.save(submission)
            except Exception as e:
                logger.warning("Submitting survey %s failed: %s", session.survey_id, e)
                raise SubmissionFailedError(
                    f"Failed to submit responses for survey {session.survey_id}"
                ) from e
            finally:
                self.is_submitting = False

        self.submission = submission
        self.state = RuntimeState.COMPLETED
        self.session = None
        logger.info(
            "Survey %s completed in %s",
            submission.survey_id,
            format_time(submission.time_spent_seconds),
        )
        return submission
