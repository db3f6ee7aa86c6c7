"""
Predicate compiler for the research feed.

A ``FilterState`` compiles into an ordered list of named predicates, one per
filter dimension, combined by AND. Keeping them separate lets the counting
engine re-run "every filter but one" by swapping a single entry.

Every predicate fails open: a dimension set to ``all``, a selection whose
dependent value is missing (custom date not chosen) or an idea whose field
cannot be read admits the idea rather than hiding it.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Dict, Iterable, List, Optional

from ..schemas import FilterState, TradeIdea
from ..utils.market_time import (
    expires_this_week,
    horizon_bucket,
    in_window,
    parse_timestamp,
    posted_window,
)

Predicate = Callable[[TradeIdea], bool]


def admit_all(idea: TradeIdea) -> bool:
    return True


QUALITY_GRADES = frozenset({"A+", "A", "A-", "B+", "B", "B-", "C+", "C"})

GRADE_TIERS: Dict[str, frozenset] = {
    "quality": QUALITY_GRADES,
    "A": frozenset({"A+", "A", "A-"}),
    "B": frozenset({"B+", "B", "B-"}),
    "C": frozenset({"C+", "C", "C-"}),
    "D": frozenset({"D+", "D", "D-", "F"}),
}

# Strict upper bounds
PRICE_CEILINGS: Dict[str, float] = {
    "under5": 5.0,
    "under10": 10.0,
    "under25": 25.0,
    "under50": 50.0,
    "under100": 100.0,
}
OVER_100_FLOOR = 100.0


@dataclass(frozen=True)
class NamedPredicate:
    dimension: str
    predicate: Predicate


def _search_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    needle = state.search.strip().lower()
    if not needle:
        return admit_all

    def matches(idea: TradeIdea) -> bool:
        text = idea.catalyst or idea.thesis or ""
        return needle in idea.symbol.lower() or needle in text.lower()

    return matches


def _direction_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    wanted = state.direction
    if wanted == "all":
        return admit_all
    if wanted == "day_trade":
        return lambda idea: idea.is_day_trade
    return lambda idea: (idea.direction or "").strip().lower() == wanted


def _source_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    wanted = state.source.strip().lower()
    if wanted in ("", "all"):
        return admit_all
    return lambda idea: (idea.source or "").strip().lower() == wanted


def _asset_type_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    wanted = state.asset_type.strip().lower()
    if wanted in ("", "all"):
        return admit_all
    return lambda idea: idea.resolved_asset_type == wanted


def _grade_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    grades = GRADE_TIERS.get(state.grade)
    if grades is None:
        return admit_all
    return lambda idea: idea.grade in grades


def _trade_type_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    if state.trade_type == "day":
        return lambda idea: idea.is_day_trade
    if state.trade_type == "swing":
        return lambda idea: idea.is_swing_trade
    return admit_all


def _price_tier_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    if state.price_tier == "over100":
        return lambda idea: idea.reference_price >= OVER_100_FLOOR
    ceiling = PRICE_CEILINGS.get(state.price_tier)
    if ceiling is None:
        return admit_all
    return lambda idea: idea.reference_price < ceiling


def _status_view_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    wanted = state.status_view
    if wanted not in ("published", "draft"):
        return admit_all
    return lambda idea: idea.publication_status == wanted


def _date_range_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    if state.date_range == "all":
        return admit_all
    window = posted_window(state.date_range, now, tz, state.custom_date)
    if window is None:
        return admit_all

    def matches(idea: TradeIdea) -> bool:
        posted = parse_timestamp(idea.timestamp)
        if posted is None:
            return True
        return in_window(posted, window)

    return matches


def _timeframe_predicate(state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    # Ideas without a deadline only ever appear under "all"
    wanted = state.timeframe
    if wanted == "this_week":
        return lambda idea: expires_this_week(idea.deadline, now, tz)
    if wanted in ("today", "1_2_days", "3_5_days", "beyond"):
        return lambda idea: horizon_bucket(idea.deadline, now, tz) == wanted
    return admit_all


PREDICATE_BUILDERS: Dict[str, Callable[[FilterState, datetime, tzinfo], Predicate]] = {
    "search": _search_predicate,
    "direction": _direction_predicate,
    "source": _source_predicate,
    "asset_type": _asset_type_predicate,
    "grade": _grade_predicate,
    "trade_type": _trade_type_predicate,
    "price_tier": _price_tier_predicate,
    "status_view": _status_view_predicate,
    "date_range": _date_range_predicate,
    "timeframe": _timeframe_predicate,
}


def build_predicate(dimension: str, state: FilterState, now: datetime, tz: tzinfo) -> Predicate:
    """Build the predicate for one dimension of ``state``."""
    builder = PREDICATE_BUILDERS.get(dimension)
    if builder is None:
        return admit_all
    return builder(state, now, tz)


class CompiledFilter:
    """An AND of named predicates compiled from one ``FilterState``."""

    def __init__(self, predicates: List[NamedPredicate]):
        self.predicates = predicates

    @property
    def dimensions(self) -> List[str]:
        return [p.dimension for p in self.predicates]

    def matches(self, idea: TradeIdea, relax: Optional[str] = None) -> bool:
        """
        Test ``idea`` against every predicate.

        Args:
            idea: Idea to test
            relax: Dimension to skip, as if its filter were set to ``all``
        """
        for named in self.predicates:
            if named.dimension == relax:
                continue
            if not named.predicate(idea):
                return False
        return True

    def apply(self, ideas: Iterable[TradeIdea], relax: Optional[str] = None) -> List[TradeIdea]:
        return [idea for idea in ideas if self.matches(idea, relax=relax)]

    def with_predicate(self, dimension: str, predicate: Predicate) -> "CompiledFilter":
        """Copy with one dimension's predicate replaced."""
        return CompiledFilter(
            [
                NamedPredicate(dimension, predicate) if p.dimension == dimension else p
                for p in self.predicates
            ]
        )


def compile_filters(state: FilterState, now: datetime, tz: tzinfo) -> CompiledFilter:
    """Compile every filter dimension of ``state`` into one composite filter."""
    return CompiledFilter(
        [
            NamedPredicate(dimension, build_predicate(dimension, state, now, tz))
            for dimension in PREDICATE_BUILDERS
        ]
    )
