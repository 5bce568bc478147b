"""
chart_geometry.py
-----------------

Geometry for the category donut and the grouped income/expense/balance
bars. Everything here is plain arithmetic on the core data types; the
dashboard and the API turn the results into figures or JSON.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from health_animation import ease_out_cubic
from models import CategorySlice, ChartViewState, ComparisonDataPoint

logger = logging.getLogger(__name__)

START_ANGLE = -90.0
DEGREES_PER_PERCENT = 3.6

NEUTRAL_COLOR = "#8E8E93"
DIMMED_OPACITY = 0.3

ZERO_EPSILON = 0.01
BAR_HEIGHT_RATIO = 0.85
MIN_BAR_HEIGHT = 2.0
MIN_BALANCE_BAR_HEIGHT = 8.0
SWEEP_DURATION = 0.8

SERIES = ("income", "expenses", "balance")
SERIES_COLORS = {
    "income": "#4CAF50",
    "expenses": "#FF5252",
    "balance": "#3D7BE6",
}
# Balance bars are drawn by magnitude; a deficit month gets its own color
NEGATIVE_BALANCE_COLOR = "#FF9500"


# --- Donut ---

@dataclass(frozen=True)
class DonutSegment:
    name: str
    start_angle: float
    end_angle: float
    percentage: float
    amount: float
    color: str
    selected: bool

    @property
    def sweep(self) -> float:
        return self.end_angle - self.start_angle


def slice_angles(percentages: Sequence[float]) -> List[Tuple[float, float]]:
    """(start, end) degrees per slice, clockwise from the top."""
    angles = []
    start = START_ANGLE
    for pct in percentages:
        end = start + pct * DEGREES_PER_PERCENT
        angles.append((start, end))
        start = end
    return angles


def donut_segments(slices: Sequence[CategorySlice], selected: Optional[str] = None) -> List[DonutSegment]:
    """Segments for the donut; with a selection, the other slices turn grey."""
    segments = []
    for piece, (start, end) in zip(slices, slice_angles([s.percentage for s in slices])):
        is_selected = selected is not None and piece.name == selected
        keeps_color = selected is None or is_selected
        segments.append(
            DonutSegment(
                name=piece.name,
                start_angle=start,
                end_angle=end,
                percentage=piece.percentage,
                amount=piece.amount,
                color=piece.color if keeps_color else NEUTRAL_COLOR,
                selected=is_selected,
            )
        )
    return segments


def toggle_selection(current, tapped):
    """Tapping the selected item again clears the selection."""
    return None if current == tapped else tapped


# --- Grouped bars ---

def has_data(point: ComparisonDataPoint) -> bool:
    return not (
        point.income <= ZERO_EPSILON
        and point.expenses <= ZERO_EPSILON
        and abs(point.balance) <= ZERO_EPSILON
    )


def visible_points(points: Sequence[ComparisonDataPoint]) -> List[ComparisonDataPoint]:
    """Drop all-zero months so empty history does not crowd the axis."""
    return [p for p in points if has_data(p)]


def global_max(points: Sequence[ComparisonDataPoint]) -> float:
    peak = 0.0
    for p in points:
        peak = max(peak, p.income, p.expenses, abs(p.balance))
    return max(peak, 1.0)


def series_color(series: str, value: float) -> str:
    if series == "balance" and value < 0:
        return NEGATIVE_BALANCE_COLOR
    return SERIES_COLORS[series]


def bar_height(value: float, max_value: float, chart_height: float, progress: float,
               minimum: float = MIN_BAR_HEIGHT) -> float:
    scaled = abs(value) / max(max_value, 1.0) * chart_height * BAR_HEIGHT_RATIO * progress
    return max(scaled, minimum)


@dataclass(frozen=True)
class Bar:
    series: str
    value: float
    height: float
    color: str
    opacity: float


@dataclass(frozen=True)
class BarGroup:
    index: int
    month: date
    bars: Tuple[Bar, Bar, Bar]
    selected: bool
    dimmed: bool

    @property
    def underline(self) -> bool:
        return self.selected


@dataclass(frozen=True)
class PeriodSummary:
    income: float
    expenses: float
    balance: float
    month: Optional[date] = None

    @property
    def is_month(self) -> bool:
        return self.month is not None


def bar_groups(
    points: Sequence[ComparisonDataPoint],
    chart_height: float,
    progress: float = 1.0,
    selected_index: Optional[int] = None,
) -> List[BarGroup]:
    """Heights and highlight state for each visible month's three bars."""
    peak = global_max(points)
    progress = max(0.0, min(1.0, progress))
    groups = []
    for i, point in enumerate(points):
        selected = selected_index == i
        dimmed = selected_index is not None and not selected
        bars = []
        for series in SERIES:
            value = getattr(point, series)
            minimum = MIN_BALANCE_BAR_HEIGHT if series == "balance" else MIN_BAR_HEIGHT
            bars.append(
                Bar(
                    series=series,
                    value=value,
                    height=bar_height(value, peak, chart_height, progress, minimum),
                    color=NEUTRAL_COLOR if dimmed else series_color(series, value),
                    opacity=DIMMED_OPACITY if dimmed else 1.0,
                )
            )
        groups.append(BarGroup(index=i, month=point.month, bars=tuple(bars), selected=selected, dimmed=dimmed))
    return groups


def period_summary(points: Sequence[ComparisonDataPoint], selected_index: Optional[int] = None) -> PeriodSummary:
    if selected_index is not None and 0 <= selected_index < len(points):
        point = points[selected_index]
        return PeriodSummary(point.income, point.expenses, point.balance, month=point.month)
    return PeriodSummary(
        income=sum(p.income for p in points),
        expenses=sum(p.expenses for p in points),
        balance=sum(p.balance for p in points),
    )


class BarChartController:
    """
    Owns the view state of one grouped bar chart.

    The entrance sweep runs once per expansion: refreshing data while the
    section stays open keeps the current progress, collapsing resets it.
    """

    def __init__(self, state: Optional[ChartViewState] = None):
        self.state = state or ChartViewState()
        self.points: List[ComparisonDataPoint] = []

    def set_points(self, points: Sequence[ComparisonDataPoint]):
        self.points = visible_points(points)
        index = self.state.selected_index
        if index is not None and index >= len(self.points):
            self.state.selected_index = None

    def expand(self) -> bool:
        """Open the section; True means a sweep should be started."""
        if self.state.expanded:
            return False
        self.state.expanded = True
        self.state.animation_progress = 0.0
        return True

    def collapse(self):
        self.state.expanded = False
        self.state.animation_progress = 0.0

    def advance_sweep(self, elapsed: float, duration: float = SWEEP_DURATION) -> float:
        if not self.state.expanded:
            return self.state.animation_progress
        t = min(elapsed / duration, 1.0) if duration > 0 else 1.0
        self.state.animation_progress = ease_out_cubic(t)
        return self.state.animation_progress

    def tap(self, index: int):
        if not 0 <= index < len(self.points):
            logger.debug("Ignoring tap on missing bar group %s", index)
            return
        self.state.selected_index = toggle_selection(self.state.selected_index, index)

    def tap_background(self):
        self.state.selected_index = None

    def groups(self, chart_height: float) -> List[BarGroup]:
        return bar_groups(self.points, chart_height, self.state.animation_progress, self.state.selected_index)

    def summary(self) -> PeriodSummary:
        return period_summary(self.points, self.state.selected_index)
