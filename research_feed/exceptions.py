"""
Custom exceptions for the research feed.

The pipeline itself never raises: malformed idea fields are defaulted and
unknown filter values admit everything. These exceptions cover the edges
around it (configuration, record parsing and preference persistence).

Usage:
    from research_feed.exceptions import (
        IdeaValidationError,
        InvalidConfigError,
        PreferenceStoreError,
    )

    try:
        idea = parse_idea(record)
    except IdeaValidationError as e:
        logger.warning("ideas.rejected", error=str(e))
"""


class ResearchFeedError(Exception):
    """Base exception for all research feed errors."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ResearchFeedError):
    """Error in configuration."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    pass


# =============================================================================
# Data Errors
# =============================================================================


class DataError(ResearchFeedError):
    """Base exception for data-related errors."""

    pass


class IdeaValidationError(DataError):
    """A raw trade idea record could not be parsed."""

    def __init__(self, message: str, record_id: object = None):
        super().__init__(message)
        self.record_id = record_id


# =============================================================================
# Preference Errors
# =============================================================================


class PreferenceError(ResearchFeedError):
    """Base exception for persisted preference errors."""

    pass


class PreferenceStoreError(PreferenceError):
    """The preference store rejected a write."""

    pass
