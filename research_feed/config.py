"""
Configuration for the research feed with Pydantic validation.

Settings are read from environment variables (optionally from a ``.env``
file) and validated once. Every stage of the pipeline takes its tunables
(page size, freshness window, calendar time zone, ...) from ``FeedConfig``.
"""

import os
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import InvalidConfigError


class LogFormat(str, Enum):
    """Log output format."""

    JSON = "json"
    TEXT = "text"


DEFAULT_ASSET_ORDER = ["stock", "penny_stock", "option", "crypto", "future"]


class FeedConfig(BaseModel):
    """Research feed configuration."""

    page_size: int = Field(default=20, ge=1, le=500, description="Ideas per group page")
    very_fresh_hours: float = Field(
        default=2.0, gt=0, le=48, description="Age under which an open idea ranks first"
    )
    compact_page_threshold: int = Field(
        default=7, ge=3, description="Page count above which pagination collapses into ellipses"
    )
    page_window: int = Field(
        default=1, ge=0, le=5, description="Pages shown either side of the current page"
    )
    timezone: str = Field(
        default="America/New_York", description="Time zone defining calendar days"
    )
    default_asset_order: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ASSET_ORDER),
        description="Group order used until the user customises it",
    )

    # Persisted preferences
    preference_namespace: str = Field(
        default="research_feed", min_length=1, description="Prefix for persisted preference keys"
    )
    preference_debounce_seconds: float = Field(
        default=0.5, ge=0, le=60, description="Delay before staged preferences are written"
    )

    # Curation
    deduplicate: bool = Field(
        default=False, description="Collapse repeated symbol/direction ideas before filtering"
    )
    max_ideas_per_symbol: int = Field(
        default=2, ge=1, le=50, description="Ideas kept per symbol/direction/option type"
    )
    top_conviction_limit: int = Field(default=4, ge=1, le=50, description="Top conviction size")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Log format: text or json")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {v}")
        return v

    @field_validator("default_asset_order")
    @classmethod
    def validate_asset_order(cls, v: List[str]) -> List[str]:
        """Strip blanks and drop duplicates, keeping first occurrence."""
        cleaned: List[str] = []
        for label in v:
            label = label.strip().lower()
            if label and label not in cleaned:
                cleaned.append(label)
        return cleaned

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_config_from_env() -> FeedConfig:
    """
    Load configuration from environment variables with validation.

    Environment variables use the ``FEED_`` prefix:
    - FEED_PAGE_SIZE=20
    - FEED_VERY_FRESH_HOURS=2
    - FEED_TIMEZONE=America/New_York
    - FEED_ASSET_ORDER=stock,option,crypto
    - FEED_DEDUPLICATE=true

    Returns:
        FeedConfig: Validated configuration object

    Raises:
        InvalidConfigError: If any value fails validation
    """
    load_dotenv()

    config_dict = {
        "page_size": os.getenv("FEED_PAGE_SIZE", "20"),
        "very_fresh_hours": os.getenv("FEED_VERY_FRESH_HOURS", "2.0"),
        "compact_page_threshold": os.getenv("FEED_COMPACT_PAGE_THRESHOLD", "7"),
        "page_window": os.getenv("FEED_PAGE_WINDOW", "1"),
        "timezone": os.getenv("FEED_TIMEZONE", "America/New_York"),
        "default_asset_order": os.getenv("FEED_ASSET_ORDER", ",".join(DEFAULT_ASSET_ORDER)).split(
            ","
        ),
        "preference_namespace": os.getenv("FEED_PREFERENCE_NAMESPACE", "research_feed"),
        "preference_debounce_seconds": os.getenv("FEED_PREFERENCE_DEBOUNCE", "0.5"),
        "deduplicate": os.getenv("FEED_DEDUPLICATE", "false").lower() == "true",
        "max_ideas_per_symbol": os.getenv("FEED_MAX_IDEAS_PER_SYMBOL", "2"),
        "top_conviction_limit": os.getenv("FEED_TOP_CONVICTION_LIMIT", "4"),
        "log_level": os.getenv("FEED_LOG_LEVEL", "INFO"),
        "log_format": os.getenv("FEED_LOG_FORMAT", "json").lower(),
    }

    try:
        return FeedConfig(**config_dict)
    except ValidationError as e:
        raise InvalidConfigError(str(e)) from e


_config: Optional[FeedConfig] = None


def load_config() -> FeedConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config_from_env()
    return _config


__all__ = [
    "FeedConfig",
    "LogFormat",
    "DEFAULT_ASSET_ORDER",
    "load_config",
    "load_config_from_env",
]
