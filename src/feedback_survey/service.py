"""Wiring for callers that embed the survey core (admin pages, survey-taking pages)."""

from typing import Optional

from dotenv import load_dotenv

from .app_logger import get_logger, setup_logging
from .builder import BuilderController
from .config.settings import Settings
from .errors import SurveyNotFoundError
from .models import Survey
from .repository import create_repositories
from .repository.base import SubmissionRepository, SurveyRepository
from .state_machine import Clock, ResponseRuntime

logger = get_logger(__name__)


class SurveyService:
    """Creates builder and respondent sessions bound to the configured storage."""

    def __init__(
        self,
        settings: Settings,
        survey_repo: SurveyRepository,
        submission_repo: SubmissionRepository,
    ):
        self.settings = settings
        self.survey_repo = survey_repo
        self.submission_repo = submission_repo

    @classmethod
    def from_env(cls) -> "SurveyService":
        """Build a service from environment variables and an optional .env file."""
        # Load environment variables
        load_dotenv()

        settings = Settings()
        setup_logging(settings.log.level, json_logs=settings.log.json_format)

        survey_repo, submission_repo = create_repositories(settings)
        logger.info("Survey storage backend: %s", settings.storage.backend)
        return cls(settings, survey_repo, submission_repo)

    def new_builder(self, survey: Optional[Survey] = None) -> BuilderController:
        return BuilderController(survey, repository=self.survey_repo)

    async def _require_survey(self, survey_id: str) -> Survey:
        survey = await self.survey_repo.get_by_id(survey_id)
        if survey is None:
            raise SurveyNotFoundError(survey_id)
        return survey

    async def edit_survey(self, survey_id: str) -> BuilderController:
        """Resume authoring a stored survey."""
        return self.new_builder(await self._require_survey(survey_id))

    async def open_survey(self, survey_id: str, clock: Optional[Clock] = None) -> ResponseRuntime:
        """Start a respondent session for a stored survey."""
        survey = await self._require_survey(survey_id)
        runtime = ResponseRuntime(survey, repository=self.submission_repo, clock=clock)
        logger.info("Opened survey %s for a respondent", survey_id)
        return runtime
