"""Application settings and configuration management.

This module provides Pydantic-based settings loaded from environment variables
(and an optional ``.env`` file). The standard AWS variables (``AWS_PROFILE``,
``AWS_REGION``, ``AWS_SESSION_MANAGER_PLUGIN_PATH``) are read under their usual
names; bastionctl's own knobs use the ``BASTIONCTL_`` prefix.

Settings are passed explicitly into the AWS probe, the connection resolver and
the session launcher instead of being read from ``os.environ`` at call time.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bastionctl.constants import (
    DEFAULT_FORWARD_PORT,
    DEFAULT_SOCKS_PORT,
    DEFAULT_SSH_KEY_PATH,
    DEFAULT_SSH_USER,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """bastionctl settings loaded from environment variables.

    Example:
        >>> settings = Settings(aws_region="eu-west-1")
        >>> settings.default_ssh_user
        'ec2-user'
    """

    model_config = SettingsConfigDict(
        env_prefix="BASTIONCTL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # AWS Configuration
    # =========================================================================

    aws_profile: str | None = Field(
        default=None,
        validation_alias=AliasChoices("aws_profile"),
        description="Named AWS profile used to build the boto3 session",
    )

    aws_region: str | None = Field(
        default=None,
        validation_alias=AliasChoices("aws_region"),
        description="AWS region; when unset the operator is prompted during discovery",
    )

    session_manager_plugin_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "session_manager_plugin_path", "aws_session_manager_plugin_path"
        ),
        description="Explicit path to the session-manager-plugin binary",
    )

    # =========================================================================
    # Connection Defaults
    # =========================================================================

    default_ssh_user: str = Field(
        default=DEFAULT_SSH_USER,
        min_length=1,
        description="SSH user offered as the prompt default",
    )

    default_ssh_key_path: str = Field(
        default=DEFAULT_SSH_KEY_PATH,
        min_length=1,
        description="Private key path offered as the prompt default",
    )

    default_socks_port: int = Field(
        default=DEFAULT_SOCKS_PORT,
        ge=1,
        le=65535,
        description="Local SOCKS proxy port offered as the prompt default",
    )

    default_forward_port: int = Field(
        default=DEFAULT_FORWARD_PORT,
        ge=1,
        le=65535,
        description="Local port-forwarding port offered as the prompt default",
    )

    # =========================================================================
    # Logging
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Application log level",
    )

    @field_validator("aws_profile", "aws_region", "session_manager_plugin_path", mode="before")
    @classmethod
    def empty_string_is_unset(cls, v: str | None) -> str | None:
        """Treat empty environment values as unset.

        Args:
            v: Raw value from the environment or constructor.

        Returns:
            The stripped value, or None when empty.
        """
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        return v.upper() if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Validated Settings instance.
    """
    return Settings()
