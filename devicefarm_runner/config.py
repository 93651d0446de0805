"""
Configuration Management
========================

Centralized configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Shared config that all settings classes use to load .env
_shared_config = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    env_prefix="",
    extra="ignore",
)


class DeviceFarmSettings(BaseSettings):
    """AWS Device Farm connection and upload settings."""

    model_config = _shared_config

    # Device Farm is only served from us-west-2
    aws_region: str = Field(
        default="us-west-2",
        description="AWS region hosting the Device Farm API",
    )

    # Credentials (optional – falls back to default credential chain)
    aws_access_key_id: str = Field(
        default="",
        description="AWS access key ID",
    )
    aws_secret_access_key: str = Field(
        default="",
        description="AWS secret access key",
    )
    aws_session_token: str = Field(
        default="",
        description="AWS session token for temporary credentials",
    )
    aws_role_arn: str = Field(
        default="",
        description="IAM role to assume via STS before calling Device Farm",
    )

    device_farm_user_agent: str = Field(
        default="devicefarm-runner/1.0",
        description="Suffix appended to the boto3 user agent",
    )

    # Upload polling
    upload_poll_interval: float = Field(
        default=5.0,
        description="Seconds between upload status checks",
    )
    upload_timeout: Optional[float] = Field(
        default=None,
        description="Give up waiting for an upload after this many seconds (unset = wait forever)",
    )

    default_job_timeout_minutes: int = Field(
        default=60,
        description="Device Farm's own job timeout; runs only override it when they differ",
    )
    http_timeout: float = Field(
        default=300.0,
        description="Timeout in seconds for upload PUT and artifact download requests",
    )

    @field_validator("upload_poll_interval")
    @classmethod
    def check_poll_interval(cls, v: float) -> float:
        """Reject non-positive poll intervals."""
        if v <= 0:
            raise ValueError("upload_poll_interval must be positive")
        return v

    @field_validator("upload_timeout", mode="before")
    @classmethod
    def empty_timeout_is_none(cls, v):
        """Treat an empty UPLOAD_TIMEOUT env var as unset."""
        if v == "":
            return None
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = _shared_config

    debug: bool = Field(default=True, description="Pretty console logs instead of JSON")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )


class Settings(BaseSettings):
    """
    Main settings class combining all configuration sections.

    Usage:
        from devicefarm_runner.config import get_settings
        settings = get_settings()
        print(settings.device_farm.aws_region)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    device_farm: DeviceFarmSettings = Field(default_factory=DeviceFarmSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def __init__(self, **kwargs):
        """Initialize settings with nested configuration."""
        super().__init__(**kwargs)
        # Re-initialize nested settings to pick up env vars
        self.device_farm = DeviceFarmSettings()
        self.logging = LoggingSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.
    """
    return Settings()
