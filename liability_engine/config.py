"""Engine configuration management using Pydantic Settings."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Projection Defaults
    allocation_policy: str = Field(default="weighted", alias="ALLOCATION_POLICY")
    snowball_enabled: bool = Field(default=True, alias="SNOWBALL_ENABLED")
    max_projection_months: int = Field(default=1200, alias="MAX_PROJECTION_MONTHS")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("allocation_policy")
    @classmethod
    def validate_allocation_policy(cls, v):
        """Validate the default extra-payment allocation policy."""
        allowed_policies = {"weighted", "avalanche"}
        if v.lower() not in allowed_policies:
            raise ValueError(f"ALLOCATION_POLICY must be one of {allowed_policies}")
        return v.lower()

    @field_validator("max_projection_months")
    @classmethod
    def validate_max_projection_months(cls, v):
        """Keep the projection cap within the 100-year termination bound."""
        if not 1 <= v <= 1200:
            raise ValueError("MAX_PROJECTION_MONTHS must be between 1 and 1200")
        return v


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get engine settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created lazily on first use
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the configured log level to the package logger.

    The engine itself never installs handlers; embedding applications call this
    once at startup if they want the level from the environment honoured.
    """
    settings = settings or get_global_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("liability_engine").setLevel(settings.log_level)
