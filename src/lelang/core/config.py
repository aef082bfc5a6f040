"""Configuration management for Lelang.

This module provides the LelangSettings class for managing all
configuration options, supporting both environment variables and
configuration files.
"""

from typing import Any

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lelang.core.exceptions import ConfigurationError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class LelangSettings(BaseSettings):
    """Global configuration for Lelang.

    Settings can be configured via:
    - Environment variables (prefixed with LELANG_)
    - .env file
    - Direct instantiation

    Example:
        >>> settings = LelangSettings(retry_attempts=5)
        >>> # Or via environment: LELANG_RETRY_ATTEMPTS=5
    """

    # Target site
    base_url: str = Field(
        default="https://spse.inaproc.id/kemkes",
        description="Base URL of the procurement site (page and data endpoints live under it)",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent with every request",
    )
    proxy: str | None = Field(
        default=None,
        description="Forward proxy URL used when a request does not name one",
    )

    # Transport
    get_timeout: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Timeout for page GET requests in seconds",
    )
    post_timeout: float = Field(
        default=20.0,
        gt=0,
        le=120,
        description="Timeout for data POST requests in seconds",
    )
    max_redirects: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Redirect hops a GET may follow",
    )

    # Retry
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per network call",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base backoff delay in seconds (doubled per attempt)",
    )
    retry_jitter: float = Field(
        default=1.0,
        ge=0.0,
        description="Upper bound of the random jitter added to each backoff, in seconds",
    )

    # Timing
    pre_post_delay_min: float = Field(
        default=1.0,
        ge=0.0,
        description="Lower bound of the randomized pause before a tokened data POST",
    )
    pre_post_delay_max: float = Field(
        default=3.0,
        ge=0.0,
        description="Upper bound of the randomized pause before a tokened data POST",
    )

    # Extraction
    token_min_length: int = Field(
        default=10,
        ge=0,
        description="Captured tokens must be strictly longer than this",
    )

    # Request validation (routing layer)
    min_year: int = Field(default=2000, description="Earliest accepted year")
    max_year: int = Field(default=2050, description="Latest accepted year")
    default_page_size: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Page size used when a request does not give one",
    )

    # API server
    api_host: str = Field(default="127.0.0.1", description="API bind host")
    api_port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="API bind port",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="structured",
        description="Log format: 'structured' or 'plain'",
    )

    model_config = SettingsConfigDict(
        env_prefix="LELANG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "LelangSettings":
        if self.pre_post_delay_max < self.pre_post_delay_min:
            raise ValueError("pre_post_delay_max must be >= pre_post_delay_min")
        if self.max_year < self.min_year:
            raise ValueError("max_year must be >= min_year")
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump()


def load_settings(**kwargs: Any) -> LelangSettings:
    """Build settings from the environment plus ``kwargs``.

    Raises:
        ConfigurationError: A value is out of range or of the wrong type
    """
    try:
        return LelangSettings(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        name = ".".join(str(part) for part in first["loc"]) or None
        value = first.get("input")
        raise ConfigurationError(
            f"Invalid settings: {first['msg']}",
            setting_name=name,
            setting_value=None if name is None or isinstance(value, dict) else str(value),
        ) from e


# Global settings instance (lazy-loaded)
_settings: LelangSettings | None = None


def get_settings() -> LelangSettings:
    """Get the global settings instance.

    Returns:
        The global LelangSettings instance, creating it if needed.
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def configure(**kwargs: Any) -> LelangSettings:
    """Configure global settings.

    Args:
        **kwargs: Settings to override

    Returns:
        The updated global settings instance

    Raises:
        ConfigurationError: The overrides are invalid; the previous
            settings stay in place

    Example:
        >>> configure(retry_attempts=5, log_level="DEBUG")
    """
    global _settings
    _settings = load_settings(**kwargs)
    return _settings
