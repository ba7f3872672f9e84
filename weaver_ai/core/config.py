"""
Configuration Settings.

This module defines the runtime configuration using Pydantic's BaseSettings.
All values are bound from environment variables and an optional .env file.

The settings are resolved once and cached by ``get_settings``. Components that
depend on configuration (e.g. the default middleware stage list) read it when
they are constructed, never per call.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Telemetry Configuration Models
# =====================================================================


class LogfireConfig(BaseModel):
    """Pydantic Logfire configuration."""

    token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    project_name: str = Field(default="weaver-ai", alias="LOGFIRE_PROJECT_NAME", description="Logfire project name")
    environment: str = Field(
        default="development", alias="LOGFIRE_ENVIRONMENT", description="Deployment environment reported to Logfire"
    )
    service_name: str = Field(default="weaver-ai", alias="LOGFIRE_SERVICE_NAME", description="Service name")
    service_version: str = Field(default="0.0.0", alias="LOGFIRE_SERVICE_VERSION", description="Service version")
    sample_rate: float = Field(default=1.0, alias="LOGFIRE_SAMPLE_RATE", description="Head sampling rate")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Runtime settings model.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="WEAVER_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="WEAVER_AI_LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Write logs to a file under log_file_dir",
        alias="WEAVER_AI_ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file",
        alias="WEAVER_AI_LOG_FILE_DIR",
    )

    # =====================================================================
    # Instrumentation Configuration
    # =====================================================================
    instrumentation_enabled: bool = Field(
        default=False,
        description="Install the telemetry middleware stage on every run",
        alias="WEAVER_AI_INSTRUMENTATION_ENABLED",
    )

    # =====================================================================
    # Logfire Configuration
    # =====================================================================
    logfire_token: Optional[str] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_project_name: str = Field(default="weaver-ai", alias="LOGFIRE_PROJECT_NAME")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_service_name: str = Field(default="weaver-ai", alias="LOGFIRE_SERVICE_NAME")
    logfire_service_version: str = Field(default="0.0.0", alias="LOGFIRE_SERVICE_VERSION")
    logfire_sample_rate: float = Field(default=1.0, alias="LOGFIRE_SAMPLE_RATE")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def logfire(self) -> LogfireConfig:
        """Get Logfire configuration from environment variables."""
        return LogfireConfig.model_validate(self.model_dump(by_alias=True))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings`` call re-reads the environment."""
    get_settings.cache_clear()
