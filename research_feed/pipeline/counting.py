"""
Badge counts for the research feed.

The count shown on a filter option is the number of ideas the feed would
show if that option were selected and every other filter kept its current
value. Counts are derived by swapping one predicate of the compiled filter,
never by tallying the already-filtered list.
"""

from datetime import datetime, tzinfo
from typing import Callable, Dict, List, Optional, Sequence

from ..schemas import (
    AssetType,
    DateRange,
    DirectionFilter,
    FilterState,
    GradeFilter,
    IdeaSource,
    PriceTier,
    StatusView,
    Timeframe,
    TradeIdea,
    TradeTypeFilter,
)
from .partition import Partition
from .predicates import CompiledFilter, Predicate, admit_all, build_predicate

# Restricts counts to ideas visible for a given (forced) filter state
Scope = Callable[[FilterState], Predicate]

COUNTED_VALUES: Dict[str, List[str]] = {
    "direction": [v.value for v in DirectionFilter],
    "source": ["all"] + [v.value for v in IdeaSource],
    "asset_type": ["all"] + [v.value for v in AssetType],
    "grade": [v.value for v in GradeFilter],
    "trade_type": [v.value for v in TradeTypeFilter],
    "price_tier": [v.value for v in PriceTier],
    "status_view": [v.value for v in StatusView],
    "date_range": [v.value for v in DateRange],
    "timeframe": [v.value for v in Timeframe],
}


def candidate_values(dimension: str, ideas: Sequence[TradeIdea]) -> List[str]:
    """Values a dimension can be set to, including labels only seen in the data."""
    values = list(COUNTED_VALUES.get(dimension, ["all"]))
    if dimension == "asset_type":
        seen = [idea.resolved_asset_type for idea in ideas]
    elif dimension == "source":
        seen = [(idea.source or "").strip().lower() for idea in ideas]
    else:
        seen = []
    for value in seen:
        if value and value not in values:
            values.append(value)
    return values


def count_dimension(
    ideas: Sequence[TradeIdea],
    compiled: CompiledFilter,
    state: FilterState,
    dimension: str,
    now: datetime,
    tz: tzinfo,
    values: Optional[List[str]] = None,
    scope: Optional[Scope] = None,
) -> Dict[str, int]:
    """
    Count matches for each value of one dimension.

    Args:
        ideas: Full idea collection
        compiled: Filter compiled from ``state``
        state: Current filter state
        dimension: Dimension whose value is varied
        now: Reference time for date-based predicates
        tz: Calendar time zone
        values: Values to count (defaults to every candidate value)
        scope: Optional visibility restriction evaluated per forced state

    Returns:
        Mapping of value to count
    """
    if values is None:
        values = candidate_values(dimension, ideas)

    # Ideas passing every other dimension; only this dimension varies below
    base = compiled.apply(ideas, relax=dimension)

    counts: Dict[str, int] = {}
    for value in values:
        forced = state.model_copy(update={dimension: value})
        predicate = build_predicate(dimension, forced, now, tz)
        visible = scope(forced) if scope is not None else admit_all
        counts[value] = sum(1 for idea in base if predicate(idea) and visible(idea))
    return counts


def count_badges(
    ideas: Sequence[TradeIdea],
    compiled: CompiledFilter,
    state: FilterState,
    now: datetime,
    tz: tzinfo,
    scope: Optional[Scope] = None,
) -> Dict[str, Dict[str, int]]:
    """Counts for every badge-bearing dimension."""
    return {
        dimension: count_dimension(ideas, compiled, state, dimension, now, tz, scope=scope)
        for dimension in COUNTED_VALUES
    }


def count_outcomes(partition: Partition) -> Dict[str, int]:
    return {
        "active": len(partition.active),
        "closed": len(partition.closed),
        "all": partition.total,
    }
