"""Supabase repository implementation."""

from typing import Optional

from supabase import Client, create_client

from ..app_logger import get_logger
from ..config.settings import SupabaseSettings
from ..definition import (
    submission_from_payload,
    submission_to_payload,
    survey_from_definition,
    survey_to_definition,
)
from ..models import Submission, Survey
from .base import SubmissionRepository, SurveyRepository

logger = get_logger(__name__)


class SupabaseClientManager:
    """Creates the Supabase client on first query and reuses it afterwards."""

    def __init__(self, settings: SupabaseSettings):
        if not settings.is_configured:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment")
        self.settings = settings
        self._client: Optional[Client] = None

    def table(self, name: str):
        if self._client is None:
            logger.debug("Connecting to Supabase at %s", self.settings.url)
            self._client = create_client(self.settings.url, self.settings.key)
        return self._client.table(name)


class SupabaseSurveyRepository(SurveyRepository):
    """Supabase-backed survey definition repository."""

    table = "surveys"

    def __init__(self, client_manager: SupabaseClientManager):
        self.client_manager = client_manager

    def _to_row(self, survey: Survey) -> dict:
        definition = survey_to_definition(survey)
        return {
            "id": definition["id"],
            "title": definition["title"],
            "description": definition["description"],
            "anonymous_responses": definition["anonymousResponses"],
            "questions": definition["questions"],
        }

    def _to_model(self, data: dict) -> Survey:
        """Convert Supabase row to Survey model."""
        return survey_from_definition({
            "id": data["id"],
            "title": data.get("title") or "Untitled Survey",
            "description": data.get("description") or "",
            "anonymousResponses": data.get("anonymous_responses", True),
            "questions": data.get("questions") or [],
        })

    async def save(self, survey: Survey) -> None:
        """Create or replace a survey definition."""
        self.client_manager.table(self.table).upsert(self._to_row(survey)).execute()
        logger.info("Stored survey %s in Supabase", survey.id)

    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        response = (
            self.client_manager.table(self.table).select("*").eq("id", id).limit(1).execute()
        )
        if response.data:
            return self._to_model(response.data[0])
        return None

    async def get_all(self) -> list[Survey]:
        """Get all surveys."""
        response = self.client_manager.table(self.table).select("*").order("title").execute()
        return [self._to_model(item) for item in response.data]


class SupabaseSubmissionRepository(SubmissionRepository):
    """Supabase-backed submission repository."""

    table = "survey_submissions"

    def __init__(self, client_manager: SupabaseClientManager):
        self.client_manager = client_manager

    def _to_model(self, data: dict) -> Submission:
        """Convert Supabase row to Submission model."""
        return submission_from_payload({
            "surveyId": data["survey_id"],
            "responses": data["responses"],
            "anonymous": data.get("anonymous", True),
            "completedAt": data["completed_at"],
            "timeSpent": data["time_spent"],
        })

    async def save(self, submission: Submission) -> None:
        """Store a completed submission."""
        payload = submission_to_payload(submission)
        self.client_manager.table(self.table).insert({
            "survey_id": payload["surveyId"],
            "responses": payload["responses"],
            "anonymous": payload["anonymous"],
            "completed_at": payload["completedAt"],
            "time_spent": payload["timeSpent"],
        }).execute()
        logger.info("Recorded submission for survey %s in Supabase", submission.survey_id)

    async def get_by_survey(self, survey_id: str) -> list[Submission]:
        """Get all submissions for a survey."""
        response = (
            self.client_manager.table(self.table)
            .select("*")
            .eq("survey_id", survey_id)
            .order("completed_at", desc=True)
            .execute()
        )
        return [self._to_model(item) for item in response.data]
