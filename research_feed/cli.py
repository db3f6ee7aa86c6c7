"""
Command-line snapshot of the research feed.

Loads a JSON dump of the ideas API and prints the view model the trade desk
would render for the given filters.

Usage:
    python -m research_feed ideas.json
    python -m research_feed ideas.json --grade all --sort timestamp --format table
    python -m research_feed ideas.json --page option=2 --date-range today
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import ValidationError

from .config import load_config
from .exceptions import ConfigurationError
from .logger import configure_logging
from .pipeline import FeedViewModel, build_feed
from .schemas import (
    DateRange,
    DirectionFilter,
    FilterState,
    GradeFilter,
    PriceTier,
    SortKey,
    StatusFilter,
    StatusView,
    Timeframe,
    TradeIdea,
    TradeTypeFilter,
    parse_ideas,
)

TABLE_COLUMNS = [
    "symbol",
    "asset_type",
    "direction",
    "outcome",
    "grade",
    "signals",
    "rr",
    "entry",
    "posted",
]


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Read idea records from a JSON list or an API payload wrapping one."""
    payload = json.loads(path.read_text())
    if isinstance(payload, dict):
        for key in ("ideas", "setups", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
        raise ValueError(f"No idea list found in {path}")
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON list in {path}")
    return payload


def parse_pages(values: Optional[Sequence[str]]) -> Dict[str, int]:
    pages: Dict[str, int] = {}
    for value in values or []:
        label, _, number = value.partition("=")
        if not label or not number.isdigit():
            raise ValueError(f"Page must look like GROUP=N, got {value!r}")
        pages[label] = int(number)
    return pages


def ideas_frame(ideas: Sequence[TradeIdea]) -> pd.DataFrame:
    rows = [
        {
            "symbol": idea.symbol,
            "asset_type": idea.resolved_asset_type,
            "direction": idea.direction,
            "outcome": idea.normalized_outcome,
            "grade": idea.grade,
            "signals": idea.signal_count,
            "rr": idea.risk_reward_ratio,
            "entry": idea.entry_price,
            "posted": idea.timestamp,
        }
        for idea in ideas
    ]
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def render_table(view: FeedViewModel) -> str:
    lines = [
        f"Active: {view.outcome_counts['active']}  Closed: {view.outcome_counts['closed']}",
        "",
    ]
    for page in view.groups:
        stats = page.stats
        lines.append(
            f"== {page.label} ({page.start}-{page.end} of {page.total}, "
            f"page {page.page}/{page.total_pages}) "
            f"win rate {stats.win_rate:.1f}%  net P/L {stats.net_pnl:.2f}  "
            f"avg R:R {stats.avg_risk_reward:.2f}"
        )
        lines.append(ideas_frame(page.ideas).to_string(index=False))
        lines.append("")
    if view.closed:
        lines.append("== closed")
        lines.append(ideas_frame(view.closed).to_string(index=False))
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Research feed snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", type=Path, help="JSON file of trade ideas")
    parser.add_argument("--search", default="", help="Symbol or catalyst text")
    parser.add_argument("--direction", choices=[v.value for v in DirectionFilter], default="all")
    parser.add_argument("--source", default="all")
    parser.add_argument("--asset-type", default="all")
    parser.add_argument("--grade", choices=[v.value for v in GradeFilter], default="quality")
    parser.add_argument("--trade-type", choices=[v.value for v in TradeTypeFilter], default="all")
    parser.add_argument("--price-tier", choices=[v.value for v in PriceTier], default="all")
    parser.add_argument(
        "--status-view", choices=[v.value for v in StatusView], default="published"
    )
    parser.add_argument(
        "--status-filter", choices=[v.value for v in StatusFilter], default="active"
    )
    parser.add_argument("--date-range", choices=[v.value for v in DateRange], default="all")
    parser.add_argument("--custom-date", help="YYYY-MM-DD for --date-range custom")
    parser.add_argument("--timeframe", choices=[v.value for v in Timeframe], default="all")
    parser.add_argument("--sort", choices=[v.value for v in SortKey], default="priority")
    parser.add_argument("--asset-order", help="Comma-separated group order")
    parser.add_argument(
        "--page", action="append", metavar="GROUP=N", help="Page to show for a group"
    )
    parser.add_argument("--format", choices=["json", "table"], default="json")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        state = FilterState(
            search=args.search,
            direction=args.direction,
            source=args.source,
            asset_type=args.asset_type,
            grade=args.grade,
            trade_type=args.trade_type,
            price_tier=args.price_tier,
            status_view=args.status_view,
            status_filter=args.status_filter,
            date_range=args.date_range,
            custom_date=args.custom_date,
            timeframe=args.timeframe,
            sort_by=args.sort,
            asset_order=[s.strip() for s in (args.asset_order or "").split(",") if s.strip()],
        )
        pages = parse_pages(args.page)
    except (ValidationError, ValueError) as e:
        parser.error(str(e))

    try:
        records = load_records(args.path)
        config = load_config()
    except (OSError, ValueError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(config.log_level, config.log_format.value)
    view = build_feed(parse_ideas(records), state, pages, config=config)

    if args.format == "table":
        print(render_table(view))
    else:
        print(json.dumps(view.to_dict(), indent=2, default=str))
    return 0
