__all__ = [
    "__version__",
    "FeedConfig",
    "FilterState",
    "TradeIdea",
    "UserPreferences",
    "ResearchFeed",
    "build_feed",
    "parse_ideas",
]

__version__ = "0.1.0"

from .config import FeedConfig
from .pipeline import ResearchFeed, build_feed
from .preferences import UserPreferences
from .schemas import FilterState, TradeIdea, parse_ideas
