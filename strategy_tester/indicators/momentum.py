"""Momentum indicators built on the change tracker."""

from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..models.bar import Bar
from .base import Indicator, IndicatorKind
from .fields import CommonField
from .trackers import ChangeTracker
from .window import Window


class RSI(Indicator):
    """Relative strength index over the deltas held by the window.

    RSI = 100 - 100 / (1 + avg_gain / avg_loss), and 100.0 when there are no
    losses in the window. Not ready until the second bar produces a delta.
    """

    kind = IndicatorKind.RSI

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.CLOSE,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"rsi_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = ChangeTracker.absolute(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        avg_gain = self._tracker.average_gain()
        avg_loss = self._tracker.average_loss()
        if avg_gain is None or avg_loss is None:
            return None
        if avg_loss == 0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100.0 - 100.0 / (1.0 + rs)

    def reset(self) -> None:
        self._tracker.clear()


class Momentum(Indicator):
    """Average bar-over-bar percent change across the window."""

    kind = IndicatorKind.MOMENTUM

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.CLOSE,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"momentum_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = ChangeTracker.percentage(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        return self._tracker.average()

    def reset(self) -> None:
        self._tracker.clear()
