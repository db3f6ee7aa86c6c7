"""
Ranking engine for the research feed.

Every ordering is built on Python's stable sort, so ideas with equal keys
keep their input order. The default ``priority`` ordering puts very fresh
open ideas first, then other open ideas, then everything else, newest first
within each tier.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Sequence, Tuple

from ..schemas import TradeIdea
from ..utils.market_time import EPOCH, ensure_aware, parse_timestamp

# Missing expiry data sorts after every real deadline
FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)

RANK_VERY_FRESH = 0
RANK_OPEN = 1
RANK_OTHER = 2


def posted_at(idea: TradeIdea) -> datetime:
    """Posting time, with unreadable timestamps treated as oldest."""
    return parse_timestamp(idea.timestamp) or EPOCH


def expiry_sort_time(idea: TradeIdea) -> datetime:
    for value in (idea.expiry_date, idea.exit_by, idea.timestamp):
        parsed = parse_timestamp(value)
        if parsed is not None:
            return parsed
    return FAR_FUTURE


def priority_rank(idea: TradeIdea, now: datetime, fresh_window: timedelta) -> int:
    """
    Tier of an idea under the ``priority`` ordering.

    Returns:
        0 when open and posted within ``fresh_window``, 1 when open,
        2 otherwise
    """
    if not idea.is_open:
        return RANK_OTHER
    posted = parse_timestamp(idea.timestamp)
    if posted is not None and now - posted <= fresh_window:
        return RANK_VERY_FRESH
    return RANK_OPEN


def _priority_key(now: datetime, fresh_window: timedelta) -> Callable[[TradeIdea], Tuple]:
    def key(idea: TradeIdea) -> Tuple[int, float]:
        return priority_rank(idea, now, fresh_window), -posted_at(idea).timestamp()

    return key


# sort key -> (key function, descending)
_SIMPLE_ORDERINGS: Dict[str, Tuple[Callable[[TradeIdea], object], bool]] = {
    "timestamp": (posted_at, True),
    "expiry": (expiry_sort_time, False),
    "confidence": (lambda idea: idea.signal_count, True),
    "rr": (lambda idea: idea.risk_reward_ratio or 0.0, True),
    "price_asc": (lambda idea: idea.entry_price or 0.0, False),
    "price_desc": (lambda idea: idea.entry_price or 0.0, True),
}


def sort_ideas(
    ideas: Sequence[TradeIdea],
    sort_by: str,
    now: datetime,
    very_fresh_hours: float = 2.0,
) -> List[TradeIdea]:
    """
    Return ``ideas`` ordered by ``sort_by``.

    ``confidence`` orders by the number of quality signals, not by the
    confidence score. Unknown sort keys fall back to ``priority``.

    Args:
        ideas: Filtered ideas
        sort_by: priority, timestamp, expiry, confidence, rr, price_asc or price_desc
        now: Reference time for freshness
        very_fresh_hours: Age limit of the top priority tier

    Returns:
        A new sorted list
    """
    ordering = _SIMPLE_ORDERINGS.get(sort_by)
    if ordering is not None:
        key, descending = ordering
        # reverse=True keeps equal keys in input order
        return sorted(ideas, key=key, reverse=descending)

    fresh_window = timedelta(hours=very_fresh_hours)
    return sorted(ideas, key=_priority_key(ensure_aware(now), fresh_window))
