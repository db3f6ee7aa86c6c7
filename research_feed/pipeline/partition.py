"""Active/closed partition of a filtered, sorted feed."""

from dataclasses import dataclass, field
from typing import Iterable, List

from ..schemas import FilterState, TradeIdea
from .predicates import Predicate

ACTIVE_OUTCOMES = frozenset({"open"})
CLOSED_OUTCOMES = frozenset({"hit_target", "hit_stop", "expired"})


@dataclass
class Partition:
    """Ideas split by normalized outcome, each side in input order."""

    active: List[TradeIdea] = field(default_factory=list)
    closed: List[TradeIdea] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.active) + len(self.closed)


def is_active(idea: TradeIdea) -> bool:
    return idea.normalized_outcome in ACTIVE_OUTCOMES


def is_closed(idea: TradeIdea) -> bool:
    return idea.normalized_outcome in CLOSED_OUTCOMES


def partition_ideas(ideas: Iterable[TradeIdea]) -> Partition:
    """
    Split ideas into active and closed.

    An outcome of ``closed`` (or any other unrecognised value) lands in
    neither list and is not shown in the two-section view.
    """
    partition = Partition()
    for idea in ideas:
        if is_active(idea):
            partition.active.append(idea)
        elif is_closed(idea):
            partition.closed.append(idea)
    return partition


def shows_both_sections(state: FilterState) -> bool:
    # Today's view audits same-day activity, so closed ideas show alongside active ones
    return state.date_range == "today" or state.status_filter not in ("active", "closed")


def display_ideas(partition: Partition, state: FilterState) -> List[TradeIdea]:
    """The list the feed shows for the current status selection."""
    if shows_both_sections(state):
        return partition.active + partition.closed
    if state.status_filter == "closed":
        return list(partition.closed)
    return list(partition.active)


def display_predicate(state: FilterState) -> Predicate:
    """Membership test matching ``display_ideas`` for ``state``."""
    if shows_both_sections(state):
        return lambda idea: is_active(idea) or is_closed(idea)
    if state.status_filter == "closed":
        return is_closed
    return is_active
