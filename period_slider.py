import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

from health_animation import ease_out_cubic
from models import MAX_PERIOD, MIN_PERIOD

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 1
MAX_LABEL_DISTANCE = 5.5
SCALE_RANGE = (0.65, 0.80)
OPACITY_RANGE = (0.40, 0.55)


@dataclass(frozen=True)
class RulerLabel:
    month: int
    distance: float
    selected: bool
    scale: float
    opacity: float

    @property
    def bold(self) -> bool:
        return self.selected


def clamp_value(value: float) -> float:
    return max(float(MIN_PERIOD), min(float(MAX_PERIOD), float(value)))


def period_for(value: float) -> int:
    """Nearest whole month; exact halves go to the lower month."""
    return max(MIN_PERIOD, min(MAX_PERIOD, math.ceil(value - 0.5)))


def position_for_offset(x: float, width: float) -> float:
    """Map a horizontal drag coordinate inside ``width`` onto [1, 12]."""
    if width <= 0:
        return float(MIN_PERIOD)
    fraction = max(0.0, min(1.0, x / width))
    return MIN_PERIOD + fraction * (MAX_PERIOD - MIN_PERIOD)


def _lerp(bounds, amount: float) -> float:
    low, high = bounds
    return low + (high - low) * amount


def ruler_labels(value: float) -> List[RulerLabel]:
    """
    Magnification for each month label around the live drag value.

    The label nearest the drag value is shown selected at full size; the
    others shrink and fade with distance along a cubic ease-out.
    """
    value = clamp_value(value)
    chosen = period_for(value)
    labels = []
    for month in range(MIN_PERIOD, MAX_PERIOD + 1):
        distance = abs(month - value)
        if month == chosen:
            labels.append(RulerLabel(month, distance, True, 1.0, 1.0))
            continue
        closeness = 1.0 - min(distance / MAX_LABEL_DISTANCE, 1.0)
        eased = ease_out_cubic(closeness)
        labels.append(
            RulerLabel(
                month=month,
                distance=distance,
                selected=False,
                scale=_lerp(SCALE_RANGE, eased),
                opacity=_lerp(OPACITY_RANGE, eased),
            )
        )
    return labels


class PeriodSlider:
    """
    Drag state for the months-back selector.

    Intermediate drags only move the live value; ``end_drag`` commits the
    period and calls ``on_commit`` once when it actually changed.
    """

    def __init__(self, on_commit: Optional[Callable[[int], None]] = None, period: int = DEFAULT_PERIOD):
        self._on_commit = on_commit
        self.period = max(MIN_PERIOD, min(MAX_PERIOD, int(period)))
        self.value = float(self.period)
        self.dragging = False

    def drag(self, value: float) -> float:
        self.dragging = True
        self.value = clamp_value(value)
        return self.value

    def drag_to_offset(self, x: float, width: float) -> float:
        return self.drag(position_for_offset(x, width))

    def end_drag(self, value: Optional[float] = None) -> int:
        if value is not None:
            self.value = clamp_value(value)
        self.dragging = False
        period = period_for(self.value)
        self.value = float(period)
        if period != self.period:
            logger.debug("Comparison period committed: %s -> %s months", self.period, period)
            self.period = period
            if self._on_commit is not None:
                self._on_commit(period)
        return period

    def labels(self) -> List[RulerLabel]:
        return ruler_labels(self.value)
