"""
Configuration management for tv_screener using pydantic-settings.

Provides typed configuration with validation, .env file support, and
sensible defaults for every builder and transport setting.

Features:
- Type-safe configuration with validation
- .env file support (auto-loaded)
- Environment variable overrides
- Builder defaults (market, columns, sort, range) in one place

Usage:
    from tv_screener.config import settings

    timeout = settings.SCANNER_TIMEOUT
    url = settings.scanner_url("crypto")
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    tv_screener configuration.

    Settings are loaded in this order (later sources override earlier):
    1. Default values
    2. .env file
    3. Environment variables (highest priority)

    List values are read from the environment as JSON, e.g.
    ``SCANNER_DEFAULT_RANGE='[0, 100]'``.
    """

    # =========================================================================
    # Scanner Endpoint Configuration
    # =========================================================================

    SCANNER_URL_TEMPLATE: str = Field(
        default="https://scanner.tradingview.com/{market}/scan",
        description="Scanner endpoint template; '{market}' is replaced by the market scope",
    )

    SCANNER_GLOBAL_MARKET: str = Field(
        default="global",
        description="Market segment of the aggregate (cross-market) endpoint",
    )

    SCANNER_TIMEOUT: float = Field(
        default=20.0,
        description="Per-request timeout in seconds",
        gt=0,
    )

    # =========================================================================
    # Query Defaults
    # =========================================================================

    SCANNER_DEFAULT_MARKET: str = Field(
        default="america",
        description="Market scope of a freshly constructed query",
    )

    SCANNER_DEFAULT_COLUMNS: List[str] = Field(
        default_factory=lambda: ["name", "close", "volume", "market_cap_basic"],
        description="Columns selected by a freshly constructed query",
    )

    SCANNER_DEFAULT_SORT: str = Field(
        default="Value.Traded",
        description="Field a freshly constructed query sorts by (descending)",
    )

    SCANNER_DEFAULT_RANGE: List[int] = Field(
        default_factory=lambda: [0, 50],
        description="Default [offset, limit] window",
        min_length=2,
        max_length=2,
    )

    SCANNER_LANG: str = Field(
        default="en",
        description="Language sent as options.lang",
    )

    # =========================================================================
    # Concurrency Configuration
    # =========================================================================

    SCANNER_MAX_CONCURRENT: int = Field(
        default=4,
        description="Max concurrent scanner requests issued by scan_many()",
        gt=0,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    TV_SCREENER_LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    LOG_FORMAT: str = Field(
        default="text",
        description="Log format: 'text' for human-readable, 'json' for structured",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from environment
    )

    def scanner_url(self, market: str) -> str:
        """Endpoint URL for a single market segment."""
        return self.SCANNER_URL_TEMPLATE.replace("{market}", market)

    @property
    def global_url(self) -> str:
        """Aggregate endpoint URL used for zero or multiple markets."""
        return self.scanner_url(self.SCANNER_GLOBAL_MARKET)


# Global settings instance - loaded once on import
settings = Settings()


def reload_settings() -> Settings:
    """
    Reload settings from environment and .env file.

    Returns:
        New Settings instance with current environment values
    """
    return Settings()


__all__ = ["settings", "reload_settings", "Settings"]
