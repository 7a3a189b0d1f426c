"""
Module: settings.py
Description: Queue client configuration using pydantic-settings.

Configures the queue binding (name, credentials, region) from keyword
arguments or environment variables with validation and defaults.
Supports .env files for local development.
"""

import re
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Long-poll waits are capped at 20 seconds by SQS
MAX_WAIT_SECONDS = 20


class QueueSettings(BaseSettings):
    """Queue client settings loaded from arguments or environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    queue_name: str = Field(
        ...,
        description="Name of the queue as provided by AWS"
    )

    # AWS settings
    aws_access_key_id: Optional[str] = Field(
        default=None,
        description="AWS access key ID (default credential chain when omitted)"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        description="AWS secret access key"
    )
    aws_session_token: Optional[str] = Field(
        default=None,
        description="Optional AWS session token for temporary credentials"
    )
    aws_region: str = Field(default="us-east-1", description="AWS region of the queue")
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Override service endpoint, e.g. a local SQS emulator"
    )
    read_timeout: int = Field(
        default=30,
        gt=MAX_WAIT_SECONDS,
        le=300,
        description="Socket read timeout in seconds; must outlast a long-poll"
    )

    # Logging
    manage_logging: bool = Field(
        default=False,
        description="Let Queue configure structlog process-wide at log_level"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('queue_name')
    @classmethod
    def validate_queue_name(cls, v: str) -> str:
        """Validate SQS queue names."""
        if not v or not isinstance(v, str):
            raise ValueError("queue_name must be a non-empty string")

        # Up to 80 alphanumerics, hyphens and underscores; FIFO queues end in .fifo
        if not re.match(r'^[A-Za-z0-9_-]{1,80}(\.fifo)?$', v):
            raise ValueError(
                "queue_name must contain only letters, numbers, hyphens, and underscores"
            )

        return v

    @field_validator('endpoint_url')
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate the endpoint override is an HTTP(S) URL."""
        if v is not None and not v.startswith(('http://', 'https://')):
            raise ValueError("endpoint_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()
