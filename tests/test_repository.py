import asyncio
import json

import pytest

from feedback_survey.config.settings import Settings, SupabaseSettings
from feedback_survey.models import Survey
from feedback_survey.repository import (
    LocalSubmissionRepository,
    LocalSurveyRepository,
    create_repositories,
)
from feedback_survey.repository import supabase as supabase_repo
from feedback_survey.repository.supabase import (
    SupabaseClientManager,
    SupabaseSubmissionRepository,
    SupabaseSurveyRepository,
)
from feedback_survey.state_machine import ResponseRuntime
from feedback_survey import survey as survey_ops


@pytest.fixture
def stored_survey(id_factory):
    survey = Survey(id="survey-100", title="Lab feedback")
    survey_ops.add_question(survey, "likert_scale", id_factory=id_factory)
    survey_ops.add_question(survey, "rating", id_factory=id_factory)
    return survey


def test_local_survey_repository_upserts(tmp_path, stored_survey):
    repo = LocalSurveyRepository(str(tmp_path))

    async def scenario():
        assert await repo.get_by_id("survey-100") is None
        await repo.save(stored_survey)
        stored_survey.title = "Lab feedback (v2)"
        await repo.save(stored_survey)
        return await repo.get_by_id("survey-100"), await repo.get_all()

    loaded, everything = asyncio.run(scenario())
    assert loaded == stored_survey
    assert len(everything) == 1

    on_disk = json.loads(repo.file_path.read_text())
    assert on_disk[0]["title"] == "Lab feedback (v2)"
    assert on_disk[0]["questions"][1]["scale"]["labels"] == {"1": "Poor", "5": "Excellent"}


def test_local_submission_repository_round_trip(tmp_path, stored_survey, clock):
    repo = LocalSubmissionRepository(str(tmp_path))
    runtime = ResponseRuntime(stored_survey, repository=repo, clock=clock)
    runtime.answer("q1", 4, sub_key="Statement 1")
    runtime.answer("q2", 5)
    clock.advance(42)
    submission = asyncio.run(runtime.submit())

    stored = asyncio.run(repo.get_by_survey("survey-100"))
    assert stored == [submission]
    assert asyncio.run(repo.get_by_survey("other")) == []

    record = json.loads(repo.file_path.read_text())[0]
    assert record["id"]
    assert record["timeSpent"] == 42
    assert record["responses"][0] == {
        "questionId": "q1",
        "answer": {"Statement 1": 4},
        "type": "likert_scale",
    }


def test_factory_builds_local_repositories(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_DATA_PATH", str(tmp_path))
    survey_repo, submission_repo = create_repositories(Settings(_env_file=None))
    assert isinstance(survey_repo, LocalSurveyRepository)
    assert isinstance(submission_repo, LocalSubmissionRepository)
    assert survey_repo.file_path == tmp_path / "surveys.json"


def test_factory_requires_supabase_credentials(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "supabase")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    with pytest.raises(ValueError):
        create_repositories(Settings(_env_file=None))


def test_factory_builds_supabase_repositories_lazily(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "service-key")
    survey_repo, submission_repo = create_repositories(Settings(_env_file=None))
    assert isinstance(survey_repo, SupabaseSurveyRepository)
    assert isinstance(submission_repo, SupabaseSubmissionRepository)
    # No client is created until the first query.
    assert survey_repo.client_manager._client is None


def test_factory_rejects_unknown_backend(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "mongodb")
    with pytest.raises(ValueError):
        create_repositories(Settings(_env_file=None))


def test_supabase_client_created_once_on_first_query(monkeypatch):
    created = []

    class FakeClient:
        def table(self, name):
            return name

    def fake_create_client(url, key):
        created.append((url, key))
        return FakeClient()

    monkeypatch.setattr(supabase_repo, "create_client", fake_create_client)
    manager = SupabaseClientManager(
        SupabaseSettings(url="https://example.supabase.co", key="service-key")
    )
    assert created == []
    assert manager.table("surveys") == "surveys"
    assert manager.table("survey_submissions") == "survey_submissions"
    assert created == [("https://example.supabase.co", "service-key")]


def test_supabase_client_manager_requires_credentials():
    with pytest.raises(ValueError):
        SupabaseClientManager(SupabaseSettings(url="", key=""))
