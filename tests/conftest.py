"""Shared fixtures: in-memory repositories, a controllable clock and predictable ids."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from feedback_survey.models import Submission, Survey
from feedback_survey.repository.base import SubmissionRepository, SurveyRepository


class InMemorySurveyRepository(SurveyRepository):
    def __init__(self):
        self.surveys: dict[str, Survey] = {}
        self.failures = 0
        self.calls = 0

    async def save(self, survey: Survey) -> None:
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise ConnectionError("storage unavailable")
        self.surveys[survey.id] = survey

    async def get_by_id(self, id: str) -> Optional[Survey]:
        return self.surveys.get(id)

    async def get_all(self) -> list[Survey]:
        return list(self.surveys.values())


class InMemorySubmissionRepository(SubmissionRepository):
    def __init__(self):
        self.submissions: list[Submission] = []
        self.failures = 0
        self.attempts: list[Submission] = []

    async def save(self, submission: Submission) -> None:
        self.attempts.append(submission)
        if self.failures:
            self.failures -= 1
            raise TimeoutError("collection service timed out")
        self.submissions.append(submission)

    async def get_by_survey(self, survey_id: str) -> list[Submission]:
        return [s for s in self.submissions if s.survey_id == survey_id]


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 15, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def survey_repo():
    return InMemorySurveyRepository()


@pytest.fixture
def submission_repo():
    return InMemorySubmissionRepository()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"q{next(counter)}"
