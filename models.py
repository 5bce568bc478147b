"""Plain data types shared by the derived-state engine and its surfaces."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Optional

MIN_PERIOD = 1
MAX_PERIOD = 12
MAX_SCORE = 100

# Prefix for goal-derived assets; real asset ids never start with it.
VIRTUAL_ASSET_PREFIX = "target-"


class AssetKind(str, Enum):
    SAVINGS = "savings"
    INVESTMENT = "investment"
    PROPERTY = "property"
    VEHICLE = "vehicle"
    CASH = "cash"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "AssetKind":
        """Map a free-text kind onto the enum; unknown kinds become OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


ASSET_KIND_COLORS = {
    AssetKind.SAVINGS: "#34C759",
    AssetKind.INVESTMENT: "#007AFF",
    AssetKind.PROPERTY: "#FF9500",
    AssetKind.VEHICLE: "#AF52DE",
    AssetKind.CASH: "#FFCC00",
    AssetKind.OTHER: "#667DEB",
}


class ScoreBand(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_WORK = "needs_work"


class ScoreColor(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class DisplayPreferences:
    currency: str = "EUR"
    date_format: str = "%b %Y"


@dataclass(frozen=True)
class FinancialSnapshot:
    """Income and expense figures for the month currently on screen.

    ``balance`` is the month's net after goal transfers, computed upstream.
    When the provider does not supply it, income minus expenses is used.
    """

    income: float
    expenses: float
    month: date
    balance: Optional[float] = None


@dataclass(frozen=True)
class HealthScore:
    score: int
    band: ScoreBand
    explanation: str = ""


@dataclass(frozen=True)
class Asset:
    id: str
    kind: AssetKind
    value: float
    name: str = ""
    description: Optional[str] = None
    currency: str = "EUR"
    is_derived_from_goal: bool = False

    @property
    def color(self) -> str:
        return ASSET_KIND_COLORS[self.kind]


@dataclass(frozen=True)
class Goal:
    """A savings target, or a spending limit when ``category`` is set."""

    id: str
    title: str
    target_amount: float
    current_amount: float
    category: Optional[str] = None
    currency: str = "EUR"

    @property
    def is_spending_limit(self) -> bool:
        return bool(self.category and self.category.strip())

    @property
    def virtual_asset_id(self) -> str:
        return f"{VIRTUAL_ASSET_PREFIX}{self.id}"


@dataclass(frozen=True)
class GoalProgress:
    goal_id: str
    amount: float
    limit: float
    percentage: float
    is_over: bool = False


@dataclass(frozen=True)
class ComparisonDataPoint:
    month: date
    income: float
    expenses: float
    balance: float
    income_change: float = 0.0
    expenses_change: float = 0.0
    balance_change: float = 0.0


@dataclass(frozen=True)
class CategorySlice:
    name: str
    percentage: float
    amount: float
    color: str = ""


@dataclass(frozen=True)
class CategoryTrend:
    current_amount: float
    previous_amount: float
    change: float
    percentage_change: float

    @property
    def is_increase(self) -> bool:
        return self.change >= 0


@dataclass(frozen=True)
class NetWorthPoint:
    month: date
    net_worth: float
    assets: float
    cash_available: float


@dataclass
class ChartViewState:
    """Mutable view state owned by one chart controller."""

    selected_index: Optional[int] = None
    selected_category: Optional[str] = None
    animation_progress: float = 0.0
    slider_value: float = float(MIN_PERIOD)
    expanded: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ChartViewState":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)
