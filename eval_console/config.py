"""Application configuration with validation."""
from typing import Optional, Literal
from functools import lru_cache
from pydantic import Field, field_validator, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Evaluation console settings, read from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "CABAS Evaluation Console"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # Admin API
    ADMIN_API_URL: str = "http://localhost:8000/api/v1"
    ADMIN_TOKEN: Optional[SecretStr] = None
    API_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=300)

    # Run polling and trigger timings
    RUN_POLL_INTERVAL_SECONDS: float = Field(
        default=3.0,
        ge=0,
        description="Fixed delay between re-fetches of a pending/processing run",
    )
    PROGRESS_STEP_SECONDS: float = Field(
        default=0.8,
        ge=0,
        description="Duration of each simulated progress step (cosmetic only)",
    )
    RUN_SETTLE_DELAY_SECONDS: float = Field(
        default=0.5,
        ge=0,
        description="Pause between refreshing businesses and opening a new run",
    )

    # Strategic position
    QUADRANT_THRESHOLD: int = Field(default=50, ge=0, le=100)

    @field_validator("ADMIN_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("ADMIN_API_URL must be an http(s) URL")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production talks to the API securely."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if not self.ADMIN_API_URL.startswith("https://"):
                raise ValueError("ADMIN_API_URL must use https in production")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
