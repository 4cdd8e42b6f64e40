"""
HNMirror Configuration System
============================

Configuration management with environment variables and Pydantic models.
Environment variables (prefix ``HNMIRROR_``, nested sections separated by
``__``) override Field defaults, e.g. ``HNMIRROR_REDDIT__SUBREDDIT=hackernews``.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FeedSettings(BaseModel):
    """Upstream RSS feed location and filtering thresholds."""
    protocol: str = Field(default="https", description="Feed URL scheme")
    base_url: str = Field(default="hnrss.org", description="Feed host")
    feed_path: str = Field(default="frontpage", description="Feed path on the host")
    count: int = Field(default=50, ge=1, le=100, description="Number of items requested")
    points_threshold: int = Field(default=100, ge=0, description="Minimum HN points")
    comments_threshold: int = Field(default=10, ge=0, description="Minimum HN comments")
    request_timeout: int = Field(default=30, ge=1, le=300, description="Feed request timeout in seconds")

    @field_validator('protocol')
    @classmethod
    def validate_protocol(cls, v):
        """Only plain and encrypted HTTP make sense for the feed."""
        v = v.lower().rstrip(':/')
        if v not in ('http', 'https'):
            raise ValueError("protocol must be 'http' or 'https'")
        return v

    @field_validator('base_url', 'feed_path')
    @classmethod
    def strip_slashes(cls, v):
        return v.strip('/')


class RedditSettings(BaseModel):
    """Reddit account and target community."""
    client_id: Optional[str] = Field(default=None, description="Reddit script app id")
    client_secret: Optional[str] = Field(default=None, description="Reddit script app secret")
    username: Optional[str] = Field(default=None, description="Bot account username")
    password: Optional[str] = Field(default=None, description="Bot account password")
    user_agent: str = Field(default="hackernews:hnmod:0.1.0", description="User agent sent to Reddit")
    subreddit: str = Field(default="hackernews", min_length=1, description="Target subreddit")
    listing_limit: int = Field(default=100, ge=1, le=1000, description="Posts fetched per listing category")
    request_timeout: int = Field(default=30, ge=1, le=300, description="Reddit API timeout in seconds")

    @field_validator('subreddit')
    @classmethod
    def strip_prefix(cls, v):
        """Accept 'r/name' as well as 'name'."""
        v = v.strip().strip('/')
        if v.lower().startswith('r/'):
            v = v[2:]
        if not v:
            raise ValueError("subreddit is required")
        return v

    def missing_credentials(self) -> list:
        """Names of credential fields that are not set."""
        return [
            name for name in ('client_id', 'client_secret', 'username', 'password')
            if not getattr(self, name)
        ]


class ProcessingSettings(BaseModel):
    """Ingestion cycle behaviour."""
    origin_domain: str = Field(
        default="news.ycombinator.com",
        description="Domain of the feed's own discussion pages"
    )
    duplicate_check_hours: int = Field(
        default=48, ge=1, le=24 * 30,
        description="Existing posts older than this are ignored for duplicate checks"
    )
    post_delay_ms: int = Field(
        default=2000, ge=0, le=10 * 60 * 1000,
        description="Pause after each successful post"
    )
    max_error_count: int = Field(
        default=3, ge=1, le=100,
        description="Failed publishes tolerated before the cycle aborts"
    )
    comment_template: str = Field(
        default="Discussion on HN: {link}",
        description="Follow-up comment text, {link} is the discussion URL"
    )

    @field_validator('comment_template')
    @classmethod
    def validate_template(cls, v):
        if '{link}' not in v:
            raise ValueError("comment_template must contain '{link}'")
        return v


class SchedulerSettings(BaseModel):
    """Recurring job configuration."""
    interval_minutes: int = Field(default=30, ge=1, le=24 * 60, description="Minutes between cycles")
    run_on_start: bool = Field(default=True, description="Run a cycle as soon as the service starts")
    lock_dir: Optional[str] = Field(default=None, description="Directory for the service lock file")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/hnmirror.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class HNMirrorSettings(BaseSettings):
    """Main application settings."""

    feed: FeedSettings = Field(default_factory=FeedSettings)
    reddit: RedditSettings = Field(default_factory=RedditSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="HNMirror", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    dry_run: bool = Field(default=False, description="Log posts instead of submitting them")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "HNMIRROR_",
        "extra": "ignore",
    }

    def validate_configuration(self, require_credentials: bool = False) -> None:
        """Validate complete configuration.

        Args:
            require_credentials: Also fail when Reddit credentials are missing
        """
        errors = []

        if require_credentials:
            missing = self.reddit.missing_credentials()
            if missing:
                errors.append(f"Missing Reddit credentials: {', '.join(missing)}")

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


def load_settings() -> HNMirrorSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = HNMirrorSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[HNMirrorSettings] = None


def get_settings(reload: bool = False) -> HNMirrorSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
