"""Local JSON file repository implementation."""

import json
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from ..app_logger import get_logger
from ..definition import (
    submission_from_payload,
    submission_to_payload,
    survey_from_definition,
    survey_to_definition,
)
from ..models import Submission, Survey
from .base import SubmissionRepository, SurveyRepository

logger = get_logger(__name__)


class _JsonFile:
    """A JSON array stored in a single file."""

    def __init__(self, file_path: Path):
        self.file_path = file_path

    async def read_all(self) -> list[dict]:
        if not self.file_path.exists():
            return []
        async with aiofiles.open(self.file_path, "r") as f:
            content = await f.read()
            return json.loads(content) if content else []

    async def write_all(self, data: list[dict]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.file_path, "w") as f:
            await f.write(json.dumps(data, indent=2, ensure_ascii=False, default=str))


class LocalSurveyRepository(SurveyRepository):
    """JSON file-based survey definition repository."""

    def __init__(self, data_path: str):
        self.store = _JsonFile(Path(data_path) / "surveys.json")

    @property
    def file_path(self) -> Path:
        return self.store.file_path

    async def save(self, survey: Survey) -> None:
        """Create or replace a survey definition."""
        data = [item for item in await self.store.read_all() if item.get("id") != survey.id]
        data.append(survey_to_definition(survey))
        await self.store.write_all(data)
        logger.info("Stored survey %s (%d questions)", survey.id, len(survey.questions))

    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        for item in await self.store.read_all():
            if item.get("id") == id:
                return survey_from_definition(item)
        return None

    async def get_all(self) -> list[Survey]:
        """Get all surveys."""
        return [survey_from_definition(item) for item in await self.store.read_all()]


class LocalSubmissionRepository(SubmissionRepository):
    """JSON file-based submission repository."""

    def __init__(self, data_path: str):
        self.store = _JsonFile(Path(data_path) / "submissions.json")

    @property
    def file_path(self) -> Path:
        return self.store.file_path

    async def save(self, submission: Submission) -> None:
        """Append a submission."""
        data = await self.store.read_all()
        data.append({"id": str(uuid.uuid4()), **submission_to_payload(submission)})
        await self.store.write_all(data)
        logger.info(
            "Recorded submission for survey %s (%d answers, %ds)",
            submission.survey_id,
            len(submission.responses),
            submission.time_spent_seconds,
        )

    async def get_by_survey(self, survey_id: str) -> list[Submission]:
        """Get all submissions for a survey."""
        return [
            submission_from_payload(item)
            for item in await self.store.read_all()
            if item.get("surveyId") == survey_id
        ]
