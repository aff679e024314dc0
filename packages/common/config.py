from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Strongly-typed settings model loaded from env / .env.

    Notes:
        - The default DSN points at a local SQLite file for development.
        - Kafka publishing is enabled only when `KAFKA_BOOTSTRAP` is provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        protected_namespaces=()
    )

    ENV: str = Field(default="dev", description="Deployment environment, e.g. dev/staging/prod")
    SERVICE_NAME: str = Field(default="trailhub", description="Service name")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./trailhub.db",
        description="SQLAlchemy async DSN (postgresql+asyncpg://... in production)",
    )

    KAFKA_BOOTSTRAP: Optional[str] = Field(default=None, description="Kafka bootstrap servers")
    PROGRESS_TOPIC: str = Field(default="trailhub.progress", description="Topic for completion facts")

    VIDEO_COMPLETION_THRESHOLD: int = Field(
        default=80, ge=1, le=100, description="Watch percentage at which a video counts as completed"
    )
    VIDEO_PROGRESS_INTERVAL_SEC: int = Field(
        default=15, ge=1, description="Minimum playback seconds between persisted video ticks"
    )
    QUIZ_MAX_ATTEMPTS: Optional[int] = Field(
        default=None, ge=1, description="Cap on attempts per learner and quiz; unlimited when unset"
    )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
