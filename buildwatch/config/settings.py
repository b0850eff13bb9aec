"""
BuildWatch Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables (prefix ``BUILDWATCH_``, nested with ``__``) override
Field defaults. Settings are built once at startup and passed explicitly
into each component.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator, AnyHttpUrl
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_FEED_URL = (
    "https://ci.openshift.redhat.com/jenkins/job/test_pull_requests_origin/rssAll"
)


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FeedSettings(BaseModel):
    """CI feed polling configuration."""
    url: AnyHttpUrl = Field(default=DEFAULT_FEED_URL, description="CI server RSS/Atom feed URL")
    request_timeout: int = Field(default=30, ge=1, le=300, description="Feed request timeout in seconds")
    cache_timeout_minutes: int = Field(default=5, ge=1, le=1440, description="Minutes between polls unless the feed asks for longer")
    enforce_cache_limit: bool = Field(default=True, description="Honour the feed's <ttl> when it is longer than the cache timeout")
    encoding: Optional[str] = Field(default=None, description="Character encoding override for the feed body")
    min_poll_seconds: float = Field(default=30.0, ge=1.0, description="Floor for the wait between polls")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v):
        """Reject encodings Python cannot decode."""
        if v is None or v == "":
            return None
        import codecs
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v


class GitHubSettings(BaseModel):
    """GitHub pull request lookup configuration."""
    token: str = Field(..., description="GitHub API token, see https://github.com/settings/tokens")
    owner: str = Field(default="openshift", min_length=1, description="Repository owner/organisation")
    repo: str = Field(default="origin", min_length=1, description="Repository name")
    api_url: AnyHttpUrl = Field(default="https://api.github.com", description="GitHub REST API base URL")
    request_timeout: int = Field(default=10, ge=1, le=120, description="Pull request lookup timeout in seconds")

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        if not v or not v.strip():
            raise ValueError("GitHub token is required")
        return v.strip()


class TelegramSettings(BaseModel):
    """Telegram chat transport configuration."""
    bot_token: str = Field(..., description="Telegram bot token")
    channel: str = Field(default="@buildwatch", min_length=1, description="Target chat id or @channel username")

    @field_validator('bot_token')
    @classmethod
    def validate_bot_token(cls, v):
        """Validate bot token format."""
        if not v or not isinstance(v, str):
            raise ValueError("Bot token is required")

        # Allow test tokens for development
        if v.endswith('_test'):
            return v

        if not v.count(':') == 1 or len(v) < 20:
            raise ValueError("Invalid bot token format")

        return v


class DispatchSettings(BaseModel):
    """Per-cycle dispatch configuration."""
    burst_limit: int = Field(default=5, ge=0, le=50, description="Stop launching item tasks once this many have been started and one more launched")
    queue_size: int = Field(default=1, ge=1, le=100, description="Capacity of the notification queue")
    suppress_aborted: bool = Field(default=True, description="Drop notifications for aborted builds instead of sending a blank status")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/buildwatch.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class BuildWatchSettings(BaseSettings):
    """Main application settings."""

    feed: FeedSettings = Field(default_factory=FeedSettings)
    github: GitHubSettings
    telegram: TelegramSettings
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "BUILDWATCH_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate cross-field configuration."""
        errors = []

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> BuildWatchSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid or a credential is missing
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        # Precedence: environment, then .env, then Field defaults
        settings = BuildWatchSettings()
        settings.validate_configuration()
        return settings

    except Exception as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_MISSING if "Field required" in str(e) else ErrorCode.CONFIG_INVALID
        )


# Cached for the CLI; core components receive settings explicitly
_settings: Optional[BuildWatchSettings] = None


def get_settings(reload: bool = False) -> BuildWatchSettings:
    """Get the process-wide settings instance.

    Args:
        reload: Force reload of settings

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
