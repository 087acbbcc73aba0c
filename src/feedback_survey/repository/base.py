"""Abstract repository interfaces."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import Submission, Survey


class SurveyRepository(ABC):
    """Abstract interface for survey definition storage."""

    @abstractmethod
    async def save(self, survey: Survey) -> None:
        """Create or replace a survey definition."""
        pass

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[Survey]:
        """Get a survey by ID."""
        pass

    @abstractmethod
    async def get_all(self) -> list[Survey]:
        """Get all surveys."""
        pass


class SubmissionRepository(ABC):
    """Abstract interface for response submission storage."""

    @abstractmethod
    async def save(self, submission: Submission) -> None:
        """Store a completed submission."""
        pass

    @abstractmethod
    async def get_by_survey(self, survey_id: str) -> list[Submission]:
        """Get all submissions for a survey."""
        pass
