"""Engine configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FI_",
        case_sensitive=False,
        extra="ignore",
    )

    # Projection horizons
    projection_years: int = Field(
        default=61, ge=1, le=200, description="Rows in a yearly projection"
    )
    monthly_projection_months: int = Field(
        default=120, ge=1, le=1200, description="Rows in a monthly projection"
    )
    coast_search_horizon: int = Field(
        default=100, ge=0, le=500, description="Years searched for the coast FI year"
    )

    # Milestone assumptions
    retirement_age: int = Field(
        default=65, ge=0, le=120, description="Reference retirement age"
    )
    default_years_to_retirement: int = Field(
        default=30,
        ge=0,
        le=120,
        description="Years to retirement used when no birth year is known",
    )

    # Scenario fan-out
    max_workers: int = Field(
        default=1, ge=1, le=64, description="Threads used to project scenarios"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"FI_LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()


def get_settings(env_file: Optional[str] = None) -> EngineSettings:
    """Get engine settings instance."""
    if env_file is not None:
        return EngineSettings(_env_file=env_file)
    return EngineSettings()


_settings: Optional[EngineSettings] = None


def get_global_settings() -> EngineSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None
