"""
PodScraper Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.
"""

from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64)"


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FetchSettings(BaseModel):
    """Feed retrieval configuration."""
    max_concurrent: int = Field(default=20, ge=1, le=500, description="Maximum requests in flight at once")
    request_timeout: int = Field(default=15, ge=1, le=300, description="Per-request timeout in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1, description="User-Agent header sent with every request")


class FilteringSettings(BaseModel):
    """Cutoff and ordering policy."""
    apply_cutoff: bool = Field(default=True, description="Only keep recent episodes in the newest view")
    cutoff_days: int = Field(default=30, ge=0, description="Number of days considered current")
    apply_to_all_view: bool = Field(default=False, description="Apply the cutoff to the all-episodes view too")
    chronological: bool = Field(default=False, description="Order the all-episodes view oldest first")


class OutputSettings(BaseModel):
    """Output file formats."""
    formats: List[str] = Field(default_factory=lambda: ["plain"], min_length=1, description="Formats written for the newest view")
    all_format: str = Field(default="plain", description="Format written for the all-episodes view")

    @field_validator('formats', mode='before')
    @classmethod
    def split_formats(cls, v):
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(',') if part.strip()]
        return v


class SourceListSettings(BaseModel):
    """Feed list reading options."""
    skip_first: bool = Field(default=True, description="Treat the first OPML feed entry as self-referential and drop it")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class PodScraperSettings(BaseSettings):
    """Main application settings."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    filtering: FilteringSettings = Field(default_factory=FilteringSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    source_list: SourceListSettings = Field(default_factory=SourceListSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="PodScraper", description="Application name")
    version: str = Field(default="0.3.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "PODSCRAPER_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate settings that depend on each other or on other modules."""
        from ..delivery.renderer import OutputFormat

        errors = []

        for name in [*self.output.formats, self.output.all_format]:
            try:
                OutputFormat.parse(name)
            except ValueError as e:
                errors.append(str(e))

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


def load_settings() -> PodScraperSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = PodScraperSettings()
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        )

    settings.validate_configuration()
    return settings


_settings: Optional[PodScraperSettings] = None


def get_settings(reload: bool = False) -> PodScraperSettings:
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
