"""Highest/lowest value of a bar field over a window."""

from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..models.bar import Bar
from .base import Indicator, IndicatorKind
from .fields import CommonField
from .trackers import ExtremumTracker
from .window import Window


class HighOfPeriod(Indicator):
    """Highest value of ``field`` over the window (high of day with a 1-day window)."""

    kind = IndicatorKind.HIGH_OF_PERIOD

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.HIGH,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"high_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = ExtremumTracker.max(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        return self._tracker.get()

    def reset(self) -> None:
        self._tracker.clear()


class LowOfPeriod(Indicator):
    """Lowest value of ``field`` over the window."""

    kind = IndicatorKind.LOW_OF_PERIOD

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.LOW,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"low_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = ExtremumTracker.min(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        return self._tracker.get()

    def reset(self) -> None:
        self._tracker.clear()
