"""
Asset-class grouping and per-group pagination.

Active ideas are grouped by asset type and every group pages independently.
Page numbers live in a plain ``{label: page}`` mapping owned by the caller;
the mapping is cleared whenever a filter changes because group membership is
no longer stable.
"""

from dataclasses import asdict, dataclass, field
from math import ceil
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..schemas import TradeIdea

GroupPageState = Dict[str, int]

DECIDED_WIN = "hit_target"
DECIDED_LOSS = "hit_stop"


@dataclass
class GroupStats:
    """Summary statistics for one asset-type group."""

    total: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0  # percent of decided trades
    net_pnl: float = 0.0
    avg_risk_reward: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GroupPage:
    """One page of one asset-type group."""

    label: str
    ideas: List[TradeIdea]
    total: int
    page: int
    page_size: int
    total_pages: int
    start: int  # 1-based index of the first idea on the page, 0 when empty
    end: int
    pages: List[Optional[int]]  # None marks an ellipsis
    stats: GroupStats = field(default_factory=GroupStats)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "ideas": [idea.model_dump(by_alias=True) for idea in self.ideas],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "start": self.start,
            "end": self.end,
            "pages": self.pages,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
            "stats": self.stats.to_dict(),
        }


def group_by_asset_type(ideas: Iterable[TradeIdea]) -> Dict[str, List[TradeIdea]]:
    """Group ideas by asset type; groups appear in first-encounter order."""
    groups: Dict[str, List[TradeIdea]] = {}
    for idea in ideas:
        groups.setdefault(idea.resolved_asset_type, []).append(idea)
    return groups


def order_groups(labels: Sequence[str], asset_order: Sequence[str]) -> List[str]:
    """
    Order group labels by the user's sequence.

    Labels missing from ``asset_order`` follow the named ones, keeping their
    original order.
    """
    position = {label: i for i, label in enumerate(asset_order)}
    named = sorted((label for label in labels if label in position), key=position.__getitem__)
    unnamed = [label for label in labels if label not in position]
    return named + unnamed


def page_count(total: int, page_size: int) -> int:
    return max(1, ceil(total / page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, page), total_pages)


def compact_pages(
    current: int, total_pages: int, threshold: int = 7, window: int = 1
) -> List[Optional[int]]:
    """
    Page links to render.

    Every page is listed up to ``threshold`` pages. Beyond that the first and
    last pages are always shown with ``current +/- window`` between them, and
    None stands in for each skipped run.
    """
    if total_pages <= threshold:
        return list(range(1, total_pages + 1))

    low = max(2, current - window)
    high = min(total_pages - 1, current + window)

    pages: List[Optional[int]] = [1]
    if low > 2:
        pages.append(None)
    pages.extend(range(low, high + 1))
    if high < total_pages - 1:
        pages.append(None)
    pages.append(total_pages)
    return pages


def summarize_group(ideas: Sequence[TradeIdea]) -> GroupStats:
    """Win rate over decided trades, net realized P/L and mean positive R:R."""
    wins = sum(1 for idea in ideas if idea.normalized_outcome == DECIDED_WIN)
    losses = sum(1 for idea in ideas if idea.normalized_outcome == DECIDED_LOSS)
    decided = wins + losses
    ratios = [
        idea.risk_reward_ratio
        for idea in ideas
        if idea.risk_reward_ratio is not None and idea.risk_reward_ratio > 0
    ]

    return GroupStats(
        total=len(ideas),
        wins=wins,
        losses=losses,
        win_rate=(wins / decided * 100) if decided else 0.0,
        net_pnl=sum(idea.realized_pnl or 0.0 for idea in ideas),
        avg_risk_reward=(sum(ratios) / len(ratios)) if ratios else 0.0,
    )


def paginate_groups(
    active: Sequence[TradeIdea],
    page_state: Mapping[str, int],
    asset_order: Sequence[str],
    page_size: int = 20,
    stats_pool: Optional[Sequence[TradeIdea]] = None,
    compact_threshold: int = 7,
    page_window: int = 1,
) -> List[GroupPage]:
    """
    Group, order and paginate the active ideas.

    Args:
        active: Active ideas in display order
        page_state: Requested page per group label (missing means page 1)
        asset_order: User's preferred group order
        page_size: Ideas per page
        stats_pool: Ideas summarised per group (defaults to ``active``); the
            caller passes active and closed ideas so win rates have decided
            trades to count
        compact_threshold: Page count above which links collapse
        page_window: Links either side of the current page

    Returns:
        One ``GroupPage`` per non-empty group
    """
    groups = group_by_asset_type(active)
    pooled = group_by_asset_type(stats_pool if stats_pool is not None else active)

    result: List[GroupPage] = []
    for label in order_groups(list(groups), asset_order):
        members = groups[label]
        total_pages = page_count(len(members), page_size)
        page = clamp_page(page_state.get(label, 1), total_pages)
        offset = (page - 1) * page_size
        ideas = list(members[offset : offset + page_size])

        result.append(
            GroupPage(
                label=label,
                ideas=ideas,
                total=len(members),
                page=page,
                page_size=page_size,
                total_pages=total_pages,
                start=offset + 1 if ideas else 0,
                end=offset + len(ideas),
                pages=compact_pages(page, total_pages, compact_threshold, page_window),
                stats=summarize_group(pooled.get(label, [])),
            )
        )
    return result
