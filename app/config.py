"""Application configuration and settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the recruiting service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    database_url: str = "sqlite+aiosqlite:///./data/app.db"
    data_directory: Path = Path("data")
    sample_job_file: Path = Path("data/sample_jobs.json")
    seed_sample_jobs: bool = True

    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    ai_request_timeout_seconds: float = 60.0

    assessment_concurrency: int = Field(default=1, ge=1)
    max_resume_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.google_api_key)


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    settings = Settings()
    settings.data_directory.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
