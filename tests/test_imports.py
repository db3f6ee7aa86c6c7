"""Test that all required imports work correctly."""


def test_core_imports():
    """Test core package imports."""
    import research_feed
    from research_feed import FeedConfig, FilterState, ResearchFeed, TradeIdea, build_feed
    from research_feed.config import load_config
    from research_feed.curation import deduplicate_ideas, feed_overview, top_conviction
    from research_feed.preferences import DebouncedPreferenceWriter, UserPreferences

    assert research_feed.__version__


def test_pipeline_imports():
    """Test pipeline module imports."""
    from research_feed.pipeline import (
        CompiledFilter,
        FeedViewModel,
        GroupPage,
        Partition,
        compile_filters,
        count_badges,
        paginate_groups,
        sort_ideas,
    )


def test_logging_imports():
    """Test logging module imports."""
    from research_feed.logger import LogEvent, get_logger, log_feed_event

    assert LogEvent.FEED_RECOMPUTED.value == "feed.recomputed"
    assert get_logger(__name__) is not None


def test_third_party_imports():
    """Test third-party library imports."""
    import dotenv
    import pandas
    import pydantic
    import structlog

    assert pydantic.VERSION.startswith("2")
