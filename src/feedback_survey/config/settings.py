"""Configuration settings using Pydantic."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage backend configuration."""
    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: str = "local"  # local, supabase
    data_path: str = "./data"


class SupabaseSettings(BaseSettings):
    """Supabase configuration."""
    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = ""
    key: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)


class LogSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    storage: StorageSettings = Field(default_factory=StorageSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    log: LogSettings = Field(default_factory=LogSettings)
