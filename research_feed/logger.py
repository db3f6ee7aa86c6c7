"""
Structured logging for the research feed.

Library code only ever calls ``get_logger``: structlog is routed through the
stdlib ``research_feed`` logger hierarchy and the host application decides
where those records go. Entry points (the CLI) call ``configure_logging`` to
attach a handler and pick the level and renderer.
"""

import logging
import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, TextIO

import structlog
from structlog.processors import CallsiteParameter

PACKAGE_LOGGER = "research_feed"


class LogEvent(str, Enum):
    """Standard log events for the research feed."""

    # Pipeline events
    FEED_RECOMPUTED = "feed.recomputed"
    FILTERS_CHANGED = "feed.filters_changed"
    PAGES_RESET = "feed.pages_reset"
    PAGE_CHANGED = "feed.page_changed"

    # Input events
    IDEAS_PARSED = "ideas.parsed"
    IDEA_REJECTED = "ideas.rejected"
    IDEAS_DEDUPLICATED = "ideas.deduplicated"

    # Preference events
    PREFERENCES_LOADED = "preferences.loaded"
    PREFERENCE_IGNORED = "preferences.ignored"
    PREFERENCES_FLUSHED = "preferences.flushed"


def add_timestamp(logger, method_name, event_dict):
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_environment(logger, method_name, event_dict):
    event_dict["environment"] = os.getenv("ENVIRONMENT", "dev")
    return event_dict


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_structlog(log_format: str = "json") -> None:
    """Route structlog through stdlib logging with the given renderer."""
    processors: List[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        add_timestamp,
        add_environment,
        structlog.processors.CallsiteParameterAdder(
            parameters=[CallsiteParameter.MODULE, CallsiteParameter.LINENO]
        ),
        _renderer(log_format.lower()),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(
    level: str = "INFO", log_format: str = "json", stream: Optional[TextIO] = None
) -> logging.Handler:
    """
    Send research feed logs to ``stream`` (stderr by default).

    Only the ``research_feed`` logger is touched; handlers on the root logger
    belong to the host application and are left alone. Calling this again
    replaces the handler installed by the previous call.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        log_format: ``json`` or ``text``
        stream: Destination stream

    Returns:
        The installed handler
    """
    configure_structlog(log_format)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_research_feed", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    # structlog has already rendered the message
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler._research_feed = True
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    package_logger.propagate = False
    return handler


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    structlog is given the package defaults the first time, unless the host
    application configured it already.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog logger bound to the stdlib logger ``name``
    """
    if not structlog.is_configured():
        configure_structlog(os.getenv("FEED_LOG_FORMAT", "json"))
    return structlog.get_logger(name)


def log_feed_event(logger: structlog.BoundLogger, event: LogEvent, **kwargs: Any) -> None:
    """
    Log a feed event at debug level.

    Recomputation happens on every keystroke in the UI, so these entries are
    kept below INFO.

    Args:
        logger: Logger instance
        event: Feed event type
        **kwargs: Additional context
    """
    logger.debug(event.value, **kwargs)


__all__ = [
    "get_logger",
    "configure_logging",
    "LogEvent",
    "log_feed_event",
]
