"""
Curated views over the raw idea collection.

- De-duplication: engines re-post the same setup many times a day, so only
  the strongest few ideas per symbol/direction/contract type are kept and
  stale ideas are dropped.
- Top conviction: the best open A-grade ideas.
- Feed overview: headline numbers for the stats cards.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, tzinfo
from math import floor
from typing import Any, Dict, List, Sequence

from .logger import LogEvent, get_logger
from .schemas import TradeIdea
from .utils.market_time import ensure_aware, local_today, parse_timestamp, start_of_day

logger = get_logger(__name__)

DAY_TRADE_MAX_AGE = timedelta(hours=48)
SWING_TRADE_MAX_AGE = timedelta(days=7)

ELITE_GRADES = frozenset({"A+", "A", "A-"})
OVERVIEW_QUALITY_GRADES = frozenset({"A+", "A", "A-", "B+", "B"})


def _confidence(idea: TradeIdea) -> float:
    return idea.confidence_score or 0.0


def is_stale(idea: TradeIdea, now: datetime) -> bool:
    """
    True when an idea should no longer be surfaced.

    Expired deadlines, day trades older than 48 hours and swing (or
    unclassified) trades older than 7 days are stale.
    """
    expiry = parse_timestamp(idea.expiry_date)
    if expiry is not None and expiry < now:
        return True

    posted = parse_timestamp(idea.timestamp)
    if posted is None:
        return False
    age = now - posted
    if idea.holding_period == "day":
        return age > DAY_TRADE_MAX_AGE
    if idea.holding_period in (None, "", "swing"):
        return age > SWING_TRADE_MAX_AGE
    return False


def dedupe_key(idea: TradeIdea) -> str:
    direction = (idea.direction or "long").lower()
    return f"{idea.symbol}-{direction}-{idea.option_type or 'stock'}"


def deduplicate_ideas(
    ideas: Sequence[TradeIdea], now: datetime, max_per_group: int = 2
) -> List[TradeIdea]:
    """
    Drop stale ideas and keep the top ``max_per_group`` per symbol/direction/type.

    Args:
        ideas: Raw idea collection
        now: Reference time for staleness
        max_per_group: Ideas kept per group, highest confidence first

    Returns:
        Surviving ideas ordered by confidence descending
    """
    now = ensure_aware(now)
    groups: Dict[str, List[TradeIdea]] = {}
    for idea in ideas:
        if not is_stale(idea, now):
            groups.setdefault(dedupe_key(idea), []).append(idea)

    kept: List[TradeIdea] = []
    for members in groups.values():
        kept.extend(sorted(members, key=_confidence, reverse=True)[:max_per_group])

    logger.debug(
        LogEvent.IDEAS_DEDUPLICATED.value, before=len(ideas), after=len(kept), groups=len(groups)
    )
    return sorted(kept, key=_confidence, reverse=True)


def top_conviction(ideas: Sequence[TradeIdea], limit: int = 4) -> List[TradeIdea]:
    """Open A-grade ideas, highest confidence first."""
    elite = [
        idea
        for idea in ideas
        if (idea.probability_band or "") in ELITE_GRADES and idea.is_open
    ]
    return sorted(elite, key=_confidence, reverse=True)[:limit]


@dataclass
class FeedOverview:
    total: int = 0
    today: int = 0
    quality: int = 0
    avg_confidence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def feed_overview(ideas: Sequence[TradeIdea], now: datetime, tz: tzinfo) -> FeedOverview:
    """Counts of open ideas: total, posted today, graded A/B+, and mean confidence."""
    open_ideas = [idea for idea in ideas if idea.is_open]
    if not open_ideas:
        return FeedOverview()

    midnight = start_of_day(local_today(now, tz), tz)
    today = 0
    for idea in open_ideas:
        posted = parse_timestamp(idea.timestamp)
        if posted is not None and posted >= midnight:
            today += 1

    mean = sum(_confidence(idea) for idea in open_ideas) / len(open_ideas)
    return FeedOverview(
        total=len(open_ideas),
        today=today,
        quality=sum(
            1 for idea in open_ideas if (idea.probability_band or "") in OVERVIEW_QUALITY_GRADES
        ),
        # Half-up rounding, matching the dashboard cards
        avg_confidence=int(floor(mean + 0.5)),
    )
