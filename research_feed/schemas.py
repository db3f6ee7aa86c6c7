"""
Trade idea and filter schemas.

Idea records arrive as camelCase JSON from the ideas API; snake_case field
names are accepted as well. Both models are frozen: the pipeline never edits
an idea, and a filter change always produces a new ``FilterState``.
"""

from datetime import date
from enum import Enum
from math import isnan
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import IdeaValidationError
from .logger import LogEvent, get_logger

logger = get_logger(__name__)


class AssetType(str, Enum):
    """Asset classes an idea can be written for."""

    STOCK = "stock"
    PENNY_STOCK = "penny_stock"
    OPTION = "option"
    CRYPTO = "crypto"
    FUTURE = "future"


class Direction(str, Enum):
    """Trade direction."""

    LONG = "long"
    SHORT = "short"


class IdeaSource(str, Enum):
    """Engine that produced the idea."""

    AI = "ai"
    QUANT = "quant"
    HYBRID = "hybrid"
    CHART_ANALYSIS = "chart_analysis"
    FLOW = "flow"
    NEWS = "news"
    MANUAL = "manual"


class PublicationStatus(str, Enum):
    PUBLISHED = "published"
    DRAFT = "draft"


class OutcomeStatus(str, Enum):
    """Canonical outcome states after normalization."""

    OPEN = "open"
    HIT_TARGET = "hit_target"
    HIT_STOP = "hit_stop"
    EXPIRED = "expired"
    CLOSED = "closed"


DAY_HOLDING_PERIODS = frozenset({"day"})
SWING_HOLDING_PERIODS = frozenset({"swing", "position", "week-ending"})

# Grade assumed when an idea carries no probability band
DEFAULT_PROBABILITY_BAND = "C"

# Only id and symbol can reject a record; these fall back to None when unreadable
NUMERIC_FIELDS = (
    "confidence_score",
    "risk_reward_ratio",
    "target_hit_probability",
    "entry_price",
    "current_price",
    "target_price",
    "stop_loss",
    "realized_pnl",
)
TEXT_FIELDS = (
    "asset_type",
    "source",
    "status",
    "outcome_status",
    "holding_period",
    "option_type",
    "probability_band",
    "timestamp",
    "expiry_date",
    "exit_by",
    "catalyst",
    "thesis",
)


class TradeIdea(BaseModel):
    """A published research idea as served by the ideas API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str
    symbol: str
    asset_type: Optional[str] = None
    direction: str = Direction.LONG.value
    source: Optional[str] = None
    status: Optional[str] = None
    outcome_status: Optional[str] = None
    holding_period: Optional[str] = None
    option_type: Optional[str] = None

    confidence_score: Optional[float] = None
    risk_reward_ratio: Optional[float] = None
    probability_band: Optional[str] = None
    target_hit_probability: Optional[float] = None

    entry_price: Optional[float] = None
    current_price: Optional[float] = None
    target_price: Optional[float] = None
    stop_loss: Optional[float] = None
    realized_pnl: Optional[float] = Field(default=None, alias="realizedPnL")

    timestamp: Optional[str] = None
    expiry_date: Optional[str] = None
    exit_by: Optional[str] = None

    catalyst: Optional[str] = None
    thesis: Optional[str] = None
    quality_signals: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("Idea id is required")
        return str(v)

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Symbol is required")
        return v

    @field_validator("direction", mode="before")
    @classmethod
    def default_direction(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v.strip():
            return Direction.LONG.value
        return v

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def lenient_number(cls, v: Any) -> Optional[float]:
        """Blank or unparseable numbers (``""``, ``"N/A"``) read as missing."""
        if v is None or isinstance(v, bool):
            return None
        try:
            number = float(v)
        except (TypeError, ValueError):
            return None
        return None if isnan(number) else number

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def lenient_text(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    @field_validator("quality_signals", mode="before")
    @classmethod
    def default_signals(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            return []
        return [str(signal) for signal in v if signal is not None]

    @property
    def normalized_outcome(self) -> str:
        """Outcome trimmed and lower-cased; blank means still open."""
        outcome = (self.outcome_status or "").strip().lower()
        return outcome or OutcomeStatus.OPEN.value

    @property
    def is_open(self) -> bool:
        return self.normalized_outcome == OutcomeStatus.OPEN.value

    @property
    def publication_status(self) -> str:
        # Records written before drafts existed carry no status
        return (self.status or PublicationStatus.PUBLISHED.value).strip().lower()

    @property
    def resolved_asset_type(self) -> str:
        """Lower-cased asset label; every stage groups and filters on this value."""
        label = (self.asset_type or "").strip().lower()
        if label:
            return label
        return AssetType.OPTION.value if self.option_type else AssetType.STOCK.value

    @property
    def grade(self) -> str:
        return (self.probability_band or DEFAULT_PROBABILITY_BAND).strip().upper()

    @property
    def is_day_trade(self) -> bool:
        return (self.holding_period or "") in DAY_HOLDING_PERIODS

    @property
    def is_swing_trade(self) -> bool:
        return (self.holding_period or "") in SWING_HOLDING_PERIODS

    @property
    def reference_price(self) -> float:
        """Latest known price: current if quoted, else entry, else zero."""
        if self.current_price is not None:
            return self.current_price
        if self.entry_price is not None:
            return self.entry_price
        return 0.0

    @property
    def deadline(self) -> Optional[str]:
        return self.expiry_date or self.exit_by

    @property
    def signal_count(self) -> int:
        return len(self.quality_signals)


class DirectionFilter(str, Enum):
    ALL = "all"
    LONG = "long"
    SHORT = "short"
    DAY_TRADE = "day_trade"


class GradeFilter(str, Enum):
    ALL = "all"
    QUALITY = "quality"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class TradeTypeFilter(str, Enum):
    ALL = "all"
    DAY = "day"
    SWING = "swing"


class PriceTier(str, Enum):
    ALL = "all"
    UNDER_5 = "under5"
    UNDER_10 = "under10"
    UNDER_25 = "under25"
    UNDER_50 = "under50"
    UNDER_100 = "under100"
    OVER_100 = "over100"


class StatusView(str, Enum):
    """Publication status filter."""

    PUBLISHED = "published"
    DRAFT = "draft"
    ALL = "all"


class StatusFilter(str, Enum):
    """Which outcome section the display list shows."""

    ACTIVE = "active"
    CLOSED = "closed"
    ALL = "all"


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_3_DAYS = "3d"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    CUSTOM = "custom"


class Timeframe(str, Enum):
    """Time-to-expiry horizon buckets."""

    ALL = "all"
    TODAY = "today"
    ONE_TO_TWO_DAYS = "1_2_days"
    THREE_TO_FIVE_DAYS = "3_5_days"
    THIS_WEEK = "this_week"
    BEYOND = "beyond"


class SortKey(str, Enum):
    PRIORITY = "priority"
    TIMESTAMP = "timestamp"
    EXPIRY = "expiry"
    CONFIDENCE = "confidence"
    RISK_REWARD = "rr"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"


class FilterState(BaseModel):
    """
    Current filter, sort and view selections of the feed.

    ``source`` and ``asset_type`` take free-form labels rather than enums:
    the feed offers every label present in the data, so a value outside
    ``IdeaSource``/``AssetType`` is a valid selection. Both are lower-cased
    to match the labels the predicates compare against.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True)

    search: str = ""
    direction: DirectionFilter = DirectionFilter.ALL
    source: str = "all"
    asset_type: str = "all"
    grade: GradeFilter = GradeFilter.QUALITY
    trade_type: TradeTypeFilter = TradeTypeFilter.ALL
    price_tier: PriceTier = PriceTier.ALL
    status_view: StatusView = StatusView.PUBLISHED
    status_filter: StatusFilter = StatusFilter.ACTIVE
    date_range: DateRange = DateRange.ALL
    custom_date: Optional[date] = None
    timeframe: Timeframe = Timeframe.ALL
    sort_by: SortKey = SortKey.PRIORITY
    view_mode: ViewMode = ViewMode.GRID
    asset_order: List[str] = Field(default_factory=list)

    @field_validator("source", "asset_type")
    @classmethod
    def normalize_label(cls, v: str) -> str:
        return v.strip().lower() or "all"

    @field_validator("asset_order")
    @classmethod
    def normalize_asset_order(cls, v: List[str]) -> List[str]:
        order: List[str] = []
        for label in v:
            label = label.strip().lower()
            if label and label not in order:
                order.append(label)
        return order

    def replace(self, **changes: Any) -> "FilterState":
        """Return a validated copy with ``changes`` applied."""
        return FilterState(**{**self.model_dump(), **changes})


def parse_idea(record: Dict[str, Any]) -> TradeIdea:
    """
    Parse one raw idea record.

    Raises:
        IdeaValidationError: If the record is not a mapping or lacks a usable
            id or symbol
    """
    try:
        return TradeIdea.model_validate(record)
    except ValidationError as e:
        record_id = record.get("id") if isinstance(record, dict) else None
        raise IdeaValidationError(str(e), record_id=record_id) from e


def parse_ideas(records: Iterable[Dict[str, Any]]) -> List[TradeIdea]:
    """Parse idea records, skipping (and logging) any that fail validation."""
    ideas: List[TradeIdea] = []
    rejected = 0
    for record in records:
        try:
            ideas.append(parse_idea(record))
        except IdeaValidationError as e:
            rejected += 1
            logger.warning(LogEvent.IDEA_REJECTED.value, record_id=e.record_id, error=str(e))

    logger.debug(LogEvent.IDEAS_PARSED.value, parsed=len(ideas), rejected=rejected)
    return ideas


__all__ = [
    "AssetType",
    "Direction",
    "IdeaSource",
    "PublicationStatus",
    "OutcomeStatus",
    "TradeIdea",
    "FilterState",
    "DirectionFilter",
    "GradeFilter",
    "TradeTypeFilter",
    "PriceTier",
    "StatusView",
    "StatusFilter",
    "DateRange",
    "Timeframe",
    "SortKey",
    "ViewMode",
    "parse_idea",
    "parse_ideas",
]
