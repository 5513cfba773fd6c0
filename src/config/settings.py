"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Per-request upload settings (endpoint, bucket, credentials) arrive in the
request body; what lives here is how the service reaches its secret store
and how it talks to object stores in general.

Mock modes enable local development without a secret volume or MinIO.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # API Configuration
    api_title: str = "Telemetry MinIO Service"
    api_version: str = "v1"

    # Secret Store Configuration
    secret_store_dir: Path = Field(
        default=Path("/etc/telemetry/secrets"),
        description="Directory secrets are mounted under, one subdirectory per secret."
    )
    secret_store_mock_mode: bool = Field(
        default=False,
        description="Use an empty in-memory secret store instead of mounted secrets."
    )
    secret_username_field: str = Field(
        default="username",
        description="Secret field holding the object store access key id."
    )
    secret_password_field: str = Field(
        default="password",
        description="Secret field holding the object store secret access key."
    )

    # Object Store Configuration
    minio_secure: bool = Field(
        default=False,
        description="Use https for endpoints given without a scheme (host:port)."
    )
    minio_region: str = Field(
        default="us-east-1",
        description="Region name sent with signed requests. MinIO defaults to us-east-1."
    )
    minio_mock_mode: bool = Field(
        default=False,
        description="Store uploads in memory instead of a real object store."
    )
    staging_dir: Optional[str] = Field(
        default=None,
        description="Directory for temporary staging files. Defaults to the system temp dir."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def validate_required_fields(self) -> list[str]:
        """
        Return a list of configuration problems.

        Whether the secret volume is mounted is a runtime concern, reported
        by the readiness check rather than here.
        """
        missing = []

        if not self.secret_username_field:
            missing.append("SECRET_USERNAME_FIELD")
        if not self.secret_password_field:
            missing.append("SECRET_PASSWORD_FIELD")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
