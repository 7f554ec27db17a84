"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Settings are loaded once by the entry point and passed explicitly to the components
that need them; nothing in the pipeline reads configuration from module globals.

Features:
- Environment variable loading and validation (``PRNOTIFY_`` prefix, optional .env)
- Secure credential handling
- Conversion of missing or invalid configuration into a single fatal error type
"""

import logging
import os
from datetime import timedelta

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "prnotify"

# Shared application logger, configured by logger.LogManager at startup
logger = logging.getLogger(APP_NAME)


class ConfigurationError(Exception):
    """Raised when the application cannot start because of missing or invalid settings."""


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Attributes:
        repos_to_watch (str): Semicolon separated ``owner/name`` repositories to inspect
        github_api_token (SecretStr): GitHub API authentication token
        github_base_url (str): GitHub API base URL (GitHub Enterprise support)
        stale_after_hours (int): Age in hours after which an open PR is stale
        max_workers (int): Maximum number of repositories queried concurrently
        notify_when_empty (bool): Show a notification even if nothing is stale
        notification_timeout_seconds (float): How long to wait for a click on the link
        app_name (str): Name of the application, used for the logger and log file
        dev (bool): Development mode, human readable console logs
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: debug)
        syslog (bool): Also send logs to the local syslog daemon
    """

    # GitHub configuration
    repos_to_watch: str = Field(
        ..., description="Semicolon separated list of owner/name repositories to watch"
    )
    github_api_token: SecretStr = Field(..., description="GitHub API token")
    github_base_url: str = Field(
        default="https://api.github.com", description="GitHub API base URL"
    )

    # Staleness detection
    stale_after_hours: int = Field(
        default=96, gt=0, description="Hours after which an open PR is stale"
    )
    max_workers: int = Field(
        default=4, ge=1, description="Repositories queried concurrently"
    )

    # Notification
    notify_when_empty: bool = Field(
        default=False, description="Notify even when no PR is stale"
    )
    notification_timeout_seconds: float = Field(
        default=60.0, ge=0, description="Seconds to wait for a click on the notification"
    )

    # Application and logging settings
    app_name: str = Field(default=APP_NAME, description="Application name")
    dev: bool = Field(default=False, description="Development mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=10, description="Logging level, default debug")
    syslog: bool = Field(default=False, description="Send logs to syslog")

    @field_validator("repos_to_watch")
    def ensure_repos_configured(cls, v: str) -> str:
        """
        Reject an empty watch-list.

        Args:
            v (str): Raw watch-list value

        Returns:
            str: The stripped watch-list

        Raises:
            ValueError: If no repositories have been set
        """
        if not v.strip():
            raise ValueError("No repos have been set, nothing to watch")
        return v.strip()

    @field_validator("github_api_token")
    def ensure_token_configured(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("github api token is not configured")
        return v

    @field_validator("log_dir")
    def ensure_absolute_path(cls, v: str) -> str:
        """
        Ensure log directory path is absolute.

        Args:
            v (str): Directory path to validate

        Returns:
            str: Absolute path to log directory
        """
        if not os.path.isabs(v):
            return os.path.abspath(v)
        return v

    @property
    def stale_threshold(self) -> timedelta:
        """Age after which an open pull request counts as stale."""
        return timedelta(hours=self.stale_after_hours)

    model_config = SettingsConfigDict(
        env_prefix="PRNOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


def load_settings(**overrides) -> Settings:
    """
    Load and validate the application settings.

    Args:
        **overrides: Values taking precedence over the environment, mostly for tests
            (``_env_file=None`` disables .env loading).

    Returns:
        Settings: Validated settings

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
