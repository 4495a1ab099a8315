"""Application settings loaded from the environment (and .env when present)."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "School Grades API"
    app_version: str = "1.0.0"
    environment: str = "development"  # development, test, production

    # Logging
    log_level: str = "INFO"
    log_dir: str | None = None  # file logging is enabled only when set

    # HTTP
    api_prefix: str = "/api"
    cors_origins: str = "http://localhost:5173"  # comma-separated
    rate_limit: str = "120/minute"

    # Used when a school has no grade scale configured
    default_grade_scale: dict[str, float] = {"A": 90, "B": 80, "C": 70, "D": 60, "F": 0}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [s.strip() for s in self.cors_origins.split(",") if s.strip()]

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.strip().upper()


settings = Settings()
