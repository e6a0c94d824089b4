import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    WORKOUT_TRACKER_DATABASE_URL: str | None = None
    SERVICE_NAME: str = "workout-tracker"
    APP_ENV: str = "local"
    CORS_ORIGINS: str | None = None

    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    # Completed workouts fetched per progression analysis; only the newest one drives the recommendation.
    PROGRESSION_LOOKBACK_WORKOUTS: int = 3
    RECENT_WORKOUTS_LIMIT: int = 5

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        return value if value in logging.getLevelNamesMapping() else "INFO"

    @property
    def log_level(self) -> int:
        return logging.getLevelNamesMapping()[self.LOG_LEVEL]

    @property
    def is_dev(self) -> bool:
        return self.APP_ENV in {"local", "dev", "test"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
