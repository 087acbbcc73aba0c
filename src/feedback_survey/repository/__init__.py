"""Repository layer for data access."""

from .base import SubmissionRepository, SurveyRepository
from .factory import create_repositories
from .local import LocalSubmissionRepository, LocalSurveyRepository

__all__ = [
    "SurveyRepository",
    "SubmissionRepository",
    "LocalSurveyRepository",
    "LocalSubmissionRepository",
    "create_repositories",
]
