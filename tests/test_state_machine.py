import asyncio
import logging

import pytest

from feedback_survey.app_logger import SessionIdFilter
from feedback_survey.builder import BuilderController
from feedback_survey.definition import submission_to_payload
from feedback_survey.errors import (
    OperationInProgressError,
    QuestionNotFoundError,
    SessionCompletedError,
    SubmissionFailedError,
    ValidationError,
)
from feedback_survey.models import QuestionKind, RuntimeState, Survey
from feedback_survey.state_machine import ResponseRuntime, format_time, initial_answer
from feedback_survey.validation import RATE_ALL_STATEMENTS_MESSAGE, REQUIRED_MESSAGE


@pytest.fixture
def two_question_survey(id_factory) -> Survey:
    """Required single-choice question followed by an optional open question."""
    builder = BuilderController(id_factory=id_factory)
    builder.add_question("multiple_choice")
    builder.update_question("q1", {"options": ["A", "B"], "allowMultiple": False, "required": True})
    builder.add_question("open_ended")
    return builder.survey


@pytest.fixture
def runtime(two_question_survey, submission_repo, clock):
    return ResponseRuntime(two_question_survey, repository=submission_repo, clock=clock)


def test_initial_answers_match_question_shapes(id_factory, clock):
    builder = BuilderController(id_factory=id_factory)
    for kind in ("likert_scale", "multiple_choice", "multiple_choice", "rank_order", "rating"):
        builder.add_question(kind)
    builder.update_question("q3", {"allowMultiple": True})

    runtime = ResponseRuntime(builder.survey, clock=clock)
    assert runtime.answers == {"q1": {}, "q2": "", "q3": [], "q4": [], "q5": ""}
    assert runtime.state is RuntimeState.IN_PROGRESS
    assert runtime.current_index == 0


def test_empty_survey_cannot_be_opened(clock):
    with pytest.raises(ValueError):
        ResponseRuntime(Survey(), clock=clock)


def test_required_question_blocks_next_until_answered(runtime, submission_repo):
    assert runtime.next() == REQUIRED_MESSAGE
    assert runtime.current_index == 0
    assert runtime.validation_errors == {"q1": REQUIRED_MESSAGE}
    assert runtime.errors == [ValidationError("q1", REQUIRED_MESSAGE)]

    runtime.answer("q1", "A")
    assert runtime.validation_errors == {}
    assert runtime.next() is None
    assert runtime.current_index == 1

    submission = asyncio.run(runtime.submit())
    assert submission is not None
    assert [(r.question_id, r.answer, r.kind) for r in submission.responses] == [
        ("q1", "A", QuestionKind.MULTIPLE_CHOICE),
        ("q2", "", QuestionKind.OPEN_ENDED),
    ]
    assert runtime.state is RuntimeState.COMPLETED
    assert submission_repo.submissions == [submission]


def test_next_on_last_question_stays_put(runtime):
    runtime.answer("q1", "B")
    runtime.next()
    assert runtime.is_last
    assert runtime.next() is None
    assert runtime.current_index == 1


def test_previous_never_validates(runtime):
    runtime.answer("q1", "A")
    runtime.next()
    assert runtime.previous() == 0
    assert runtime.previous() == 0
    runtime.answer("q1", "")
    runtime.next()
    assert runtime.previous() == 0


def test_progress_and_time(runtime, clock):
    assert runtime.progress == 50.0
    clock.advance(75)
    assert runtime.time_spent == 75
    assert format_time(runtime.time_spent) == "1:15"
    assert format_time(5) == "0:05"


def test_submit_jumps_to_first_error(id_factory, clock, submission_repo):
    builder = BuilderController(id_factory=id_factory)
    builder.add_question("open_ended")
    builder.add_question("likert_scale")
    builder.add_question("dropdown")
    builder.update_question("q2", {"required": True, "statements": ["Pace", "Clarity"]})
    builder.update_question("q3", {"required": True})

    runtime = ResponseRuntime(builder.survey, repository=submission_repo, clock=clock)
    runtime.answer("q1", "ok")
    runtime.next()
    runtime.next()
    runtime.answer("q2", 4, sub_key="Pace")

    assert asyncio.run(runtime.submit()) is None
    assert runtime.state is RuntimeState.IN_PROGRESS
    assert runtime.current_index == 1
    assert runtime.validation_errors == {
        "q2": RATE_ALL_STATEMENTS_MESSAGE,
        "q3": REQUIRED_MESSAGE,
    }
    assert submission_repo.attempts == []

    runtime.answer("q2", 2, sub_key="Clarity")
    assert "q2" not in runtime.validation_errors
    runtime.answer("q3", "Option 3")
    submission = asyncio.run(runtime.submit())
    assert submission.answer_for("q2") == {"Pace": 4, "Clarity": 2}


def test_multi_select_answers_keep_option_order(id_factory, clock):
    builder = BuilderController(id_factory=id_factory)
    builder.add_question("multiple_choice")
    builder.update_question("q1", {"allowMultiple": True, "required": True})
    runtime = ResponseRuntime(builder.survey, clock=clock)

    runtime.answer("q1", ["Option 3", "Option 1", "Option 3"])
    assert runtime.answers["q1"] == ["Option 1", "Option 3"]

    runtime.toggle_option("q1", "Option 2")
    runtime.toggle_option("q1", "Option 1", selected=False)
    assert runtime.answers["q1"] == ["Option 2", "Option 3"]

    runtime.toggle_option("q1", "Option 2", selected=False)
    runtime.toggle_option("q1", "Option 3", selected=False)
    assert runtime.next() == REQUIRED_MESSAGE


def test_answer_rejects_unknown_question_and_bad_sub_key(runtime):
    with pytest.raises(QuestionNotFoundError):
        runtime.answer("missing", "A")
    with pytest.raises(ValueError):
        runtime.answer("q1", "A", sub_key="row")
    assert set(runtime.answers) == {"q1", "q2"}


def test_transport_failure_keeps_answers_and_retry_matches(runtime, submission_repo, clock):
    runtime.answer("q1", "B")
    runtime.answer("q2", "More examples please")
    submission_repo.failures = 1

    with pytest.raises(SubmissionFailedError):
        asyncio.run(runtime.submit())
    assert runtime.state is RuntimeState.IN_PROGRESS
    assert runtime.is_submitting is False
    assert runtime.answers == {"q1": "B", "q2": "More examples please"}

    clock.advance(30)
    submission = asyncio.run(runtime.submit())
    first_attempt, second_attempt = submission_repo.attempts

    first = submission_to_payload(first_attempt)
    second = submission_to_payload(second_attempt)
    for payload in (first, second):
        payload.pop("completedAt")
        payload.pop("timeSpent")
    assert first == second
    assert second_attempt.time_spent_seconds == first_attempt.time_spent_seconds + 30
    assert submission_repo.submissions == [submission]


def test_submit_resets_session_id_on_log_records(runtime):
    runtime.answer("q1", "A")

    async def scenario():
        submission = await runtime.submit()
        record = logging.LogRecord("feedback_survey", logging.INFO, __file__, 1, "x", None, None)
        SessionIdFilter().filter(record)
        return submission, record

    submission, record = asyncio.run(scenario())
    assert submission is not None
    assert record.session_id is None


def test_concurrent_submit_rejected(runtime, submission_repo):
    runtime.answer("q1", "A")
    gate = asyncio.Event()
    original_save = submission_repo.save

    async def slow_save(submission):
        await gate.wait()
        await original_save(submission)

    submission_repo.save = slow_save

    async def scenario():
        first = asyncio.create_task(runtime.submit())
        await asyncio.sleep(0)
        with pytest.raises(OperationInProgressError):
            await runtime.submit()
        gate.set()
        return await first

    assert asyncio.run(scenario()) is not None
    assert len(submission_repo.submissions) == 1


def test_completed_session_is_terminal(runtime):
    runtime.answer("q1", "A")
    submission = asyncio.run(runtime.submit())
    assert runtime.is_completed
    assert runtime.session is None
    assert runtime.progress == 100.0
    assert runtime.time_spent == submission.time_spent_seconds

    with pytest.raises(SessionCompletedError):
        runtime.answer("q2", "late")
    with pytest.raises(SessionCompletedError):
        runtime.next()
    with pytest.raises(SessionCompletedError):
        runtime.previous()
    with pytest.raises(SessionCompletedError):
        asyncio.run(runtime.submit())


def test_submission_is_detached_from_later_edits(id_factory, clock):
    builder = BuilderController(id_factory=id_factory)
    builder.add_question("likert_scale")
    runtime = ResponseRuntime(builder.survey, clock=clock)
    runtime.answer("q1", 3, sub_key="Statement 1")
    draft = runtime.build_submission()
    runtime.answer("q1", 5, sub_key="Statement 1")
    assert draft.answer_for("q1") == {"Statement 1": 3}


def test_load_from_definition_uses_anonymous_flag(clock):
    definition = {
        "id": "survey-002",
        "title": "Feedback",
        "anonymousResponses": False,
        "questions": [{"id": "q1", "type": "rating", "question": "Overall", "required": True}],
    }
    runtime = ResponseRuntime.load(definition, clock=clock)
    assert runtime.survey_id == "survey-002"
    runtime.answer("q1", 4)
    submission = asyncio.run(runtime.submit())
    assert submission.anonymous is False
    assert submission.survey_id == "survey-002"


def test_initial_answer_for_matrix(id_factory):
    builder = BuilderController(id_factory=id_factory)
    question = builder.add_question("matrix")
    assert initial_answer(question) == {}
