"""Repository factory."""

from typing import Tuple

from ..config.settings import Settings
from .base import SubmissionRepository, SurveyRepository
from .local import LocalSubmissionRepository, LocalSurveyRepository
from .supabase import (
    SupabaseClientManager,
    SupabaseSubmissionRepository,
    SupabaseSurveyRepository,
)


def create_repositories(settings: Settings) -> Tuple[SurveyRepository, SubmissionRepository]:
    """Create repositories for the configured storage backend.

    Args:
        settings: Application settings

    Returns:
        Tuple of (survey_repo, submission_repo)

    Raises:
        ValueError: If the backend is unknown, or Supabase is selected but not configured
    """
    backend = settings.storage.backend.lower()

    if backend == "local":
        data_path = settings.storage.data_path
        return LocalSurveyRepository(data_path), LocalSubmissionRepository(data_path)

    if backend == "supabase":
        client_manager = SupabaseClientManager(settings.supabase)
        return (
            SupabaseSurveyRepository(client_manager),
            SupabaseSubmissionRepository(client_manager),
        )

    raise ValueError(f"Unknown storage backend: {settings.storage.backend}")
