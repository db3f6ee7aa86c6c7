"""Pytest fixtures and configuration for the test suite."""

import itertools
import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from research_feed.config import FeedConfig
from research_feed.schemas import FilterState, TradeIdea

# Friday 2026-10-16, 11:00 in New York
NOW = datetime(2026, 10, 16, 15, 0, tzinfo=timezone.utc)
NEW_YORK = ZoneInfo("America/New_York")


def iso(moment: datetime) -> str:
    return moment.isoformat()


@pytest.fixture(autouse=True)
def package_logger():
    """Restore the research_feed logger after tests that configure logging."""
    logger = logging.getLogger("research_feed")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tz():
    return NEW_YORK


@pytest.fixture
def config():
    """Default configuration, independent of the process environment."""
    return FeedConfig()


@pytest.fixture
def all_filters():
    """Filter state with every dimension opened up."""
    return FilterState(grade="all", status_view="all", status_filter="all")


@pytest.fixture
def make_idea():
    """Factory for trade ideas with sensible defaults."""
    counter = itertools.count(1)

    def _make(symbol="AAPL", **fields):
        data = {
            "id": str(next(counter)),
            "symbol": symbol,
            "asset_type": "stock",
            "direction": "long",
            "probability_band": "B",
            "timestamp": iso(NOW - timedelta(days=1)),
        }
        data.update(fields)
        return TradeIdea(**data)

    return _make


@pytest.fixture
def posted():
    """ISO timestamp a given age before NOW."""

    def _posted(**delta):
        return iso(NOW - timedelta(**delta))

    return _posted
