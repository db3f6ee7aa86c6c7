"""Research feed pipeline.

Filtering, badge counting, ranking, the active/closed partition and
per-group pagination of trade ideas.
"""

from .counting import count_badges, count_dimension
from .feed import FeedViewModel, ResearchFeed, build_feed
from .grouping import GroupPage, GroupStats, compact_pages, paginate_groups
from .partition import Partition, display_ideas, partition_ideas
from .predicates import CompiledFilter, compile_filters
from .ranking import sort_ideas

__all__ = [
    "build_feed",
    "ResearchFeed",
    "FeedViewModel",
    "CompiledFilter",
    "compile_filters",
    "count_badges",
    "count_dimension",
    "sort_ideas",
    "Partition",
    "partition_ideas",
    "display_ideas",
    "GroupPage",
    "GroupStats",
    "paginate_groups",
    "compact_pages",
]
