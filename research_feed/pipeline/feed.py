"""
Research feed pipeline.

``build_feed`` is a pure function of the idea collection, the filter state,
the per-group page map and the current time:

    ideas -> predicate compiler -> ranking -> partition -> grouping/pagination
                    \\-> counting (read-only side channel)

``ResearchFeed`` wraps it with the only mutable state the feed owns: the
current ``FilterState``, the page map and the persisted preferences.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..config import FeedConfig, load_config
from ..curation import FeedOverview, deduplicate_ideas, feed_overview, top_conviction
from ..logger import LogEvent, get_logger, log_feed_event
from ..preferences import UserPreferences
from ..schemas import FilterState, TradeIdea
from ..utils.market_time import ensure_aware, expires_this_week, horizon_bucket, utc_now
from .counting import count_badges, count_outcomes
from .grouping import GroupPage, GroupPageState, paginate_groups
from .partition import display_ideas, display_predicate, partition_ideas
from .predicates import compile_filters
from .ranking import sort_ideas

logger = get_logger(__name__)

HORIZON_BUCKETS = ("today", "1_2_days", "3_5_days", "this_week", "beyond")


@dataclass
class FeedViewModel:
    """Everything the trade desk renders for one recomputation."""

    filter_state: FilterState
    generated_at: datetime
    ideas: List[TradeIdea] = field(default_factory=list)
    active: List[TradeIdea] = field(default_factory=list)
    closed: List[TradeIdea] = field(default_factory=list)
    display: List[TradeIdea] = field(default_factory=list)
    groups: List[GroupPage] = field(default_factory=list)
    badge_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    outcome_counts: Dict[str, int] = field(default_factory=dict)
    horizon_buckets: Dict[str, List[TradeIdea]] = field(default_factory=dict)
    page_state: GroupPageState = field(default_factory=dict)
    top_conviction: List[TradeIdea] = field(default_factory=list)
    overview: FeedOverview = field(default_factory=FeedOverview)

    def group(self, label: str) -> Optional[GroupPage]:
        for page in self.groups:
            if page.label == label:
                return page
        return None

    def to_dict(self) -> Dict[str, Any]:
        def dump(ideas: Sequence[TradeIdea]) -> List[Dict[str, Any]]:
            return [idea.model_dump(by_alias=True) for idea in ideas]

        return {
            "filter_state": self.filter_state.model_dump(mode="json"),
            "generated_at": self.generated_at.isoformat(),
            "ideas": dump(self.ideas),
            "active": dump(self.active),
            "closed": dump(self.closed),
            "display": dump(self.display),
            "groups": [page.to_dict() for page in self.groups],
            "badge_counts": self.badge_counts,
            "outcome_counts": self.outcome_counts,
            "horizon_buckets": {name: dump(ideas) for name, ideas in self.horizon_buckets.items()},
            "page_state": dict(self.page_state),
            "top_conviction": dump(self.top_conviction),
            "overview": self.overview.to_dict(),
        }


def bucket_by_horizon(
    ideas: Sequence[TradeIdea], now: datetime, config: FeedConfig
) -> Dict[str, List[TradeIdea]]:
    """Ideas per time-to-expiry bucket; ideas without a deadline appear only under 'all'."""
    tz = config.tz
    buckets: Dict[str, List[TradeIdea]] = {"all": list(ideas)}
    buckets.update({name: [] for name in HORIZON_BUCKETS})
    for idea in ideas:
        bucket = horizon_bucket(idea.deadline, now, tz)
        if bucket is not None:
            buckets[bucket].append(idea)
        if expires_this_week(idea.deadline, now, tz):
            buckets["this_week"].append(idea)
    return buckets


def build_feed(
    ideas: Sequence[TradeIdea],
    filter_state: FilterState,
    page_state: Optional[Mapping[str, int]] = None,
    now: Optional[datetime] = None,
    config: Optional[FeedConfig] = None,
) -> FeedViewModel:
    """
    Run the full pipeline once.

    Args:
        ideas: Current idea collection (never modified)
        filter_state: Current selections
        page_state: Requested page per asset-type group
        now: Reference time; defaults to the current UTC time
        config: Feed configuration; defaults to the environment configuration

    Returns:
        The view model for this input
    """
    config = config or load_config()
    now = ensure_aware(now) if now is not None else utc_now()
    page_state = page_state or {}
    tz = config.tz

    if config.deduplicate:
        ideas = deduplicate_ideas(ideas, now, config.max_ideas_per_symbol)

    compiled = compile_filters(filter_state, now, tz)
    filtered = compiled.apply(ideas)
    ranked = sort_ideas(filtered, filter_state.sort_by, now, config.very_fresh_hours)
    partition = partition_ideas(ranked)
    display = display_ideas(partition, filter_state)

    asset_order = filter_state.asset_order or config.default_asset_order
    groups = paginate_groups(
        partition.active,
        page_state,
        asset_order,
        page_size=config.page_size,
        stats_pool=partition.active + partition.closed,
        compact_threshold=config.compact_page_threshold,
        page_window=config.page_window,
    )

    view = FeedViewModel(
        filter_state=filter_state,
        generated_at=now,
        ideas=ranked,
        active=partition.active,
        closed=partition.closed,
        display=display,
        groups=groups,
        badge_counts=count_badges(ideas, compiled, filter_state, now, tz, scope=display_predicate),
        outcome_counts=count_outcomes(partition),
        horizon_buckets=bucket_by_horizon(display, now, config),
        page_state={page.label: page.page for page in groups},
        top_conviction=top_conviction(ideas, config.top_conviction_limit),
        overview=feed_overview(ideas, now, tz),
    )

    log_feed_event(
        logger,
        LogEvent.FEED_RECOMPUTED,
        ideas=len(ideas),
        filtered=len(ranked),
        active=len(partition.active),
        closed=len(partition.closed),
        groups=len(groups),
        sort_by=filter_state.sort_by,
    )
    return view


class ResearchFeed:
    """
    Stateful front of the pipeline for one trade-desk session.

    Holds the current filter state, the per-group page map and the persisted
    preferences. Every change replaces the whole value; nothing is edited in
    place.
    """

    def __init__(
        self,
        preferences: Optional[UserPreferences] = None,
        config: Optional[FeedConfig] = None,
        filter_state: Optional[FilterState] = None,
    ):
        self.config = config or load_config()
        self.preferences = preferences or UserPreferences()
        self.filter_state = self.preferences.apply_to(filter_state or FilterState())
        self.page_state: GroupPageState = {}
        self.logger = logger.bind(namespace=self.config.preference_namespace)

    def update_filters(self, **changes: Any) -> Dict[str, Any]:
        """
        Apply filter changes and invalidate pagination.

        Args:
            **changes: FilterState fields to replace

        Returns:
            Namespaced preference entries to persist (empty when none of the
            persisted selections changed)
        """
        new_state = self.filter_state.replace(**changes)
        if new_state == self.filter_state:
            return {}

        before = UserPreferences.from_filter_state(self.filter_state)
        after = UserPreferences.from_filter_state(new_state)
        diff = after.diff(before, self.config.preference_namespace)

        self.filter_state = new_state
        self.reset_pages()
        if diff:
            self.preferences = after

        log_feed_event(self.logger, LogEvent.FILTERS_CHANGED, fields=sorted(changes))
        return diff

    def reset_pages(self) -> None:
        """Return every group to its first page."""
        self.page_state = {}
        log_feed_event(self.logger, LogEvent.PAGES_RESET)

    def go_to_page(self, group: str, page: int) -> None:
        """Record a page request; out-of-range pages are clamped when the view is built."""
        self.page_state = {**self.page_state, group: max(1, int(page))}
        log_feed_event(self.logger, LogEvent.PAGE_CHANGED, group=group, page=page)

    def view(self, ideas: Sequence[TradeIdea], now: Optional[datetime] = None) -> FeedViewModel:
        return build_feed(ideas, self.filter_state, self.page_state, now, self.config)
