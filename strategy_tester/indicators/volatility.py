"""Volatility indicators: standard deviation and average true range."""

from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..models.bar import Bar
from .base import Indicator, IndicatorKind
from .fields import CommonField
from .trackers import SumTracker, VarianceTracker
from .window import Window


class StandardDeviation(Indicator):
    """Population standard deviation of a bar field over the window."""

    kind = IndicatorKind.STD_DEV

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.CLOSE,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"stddev_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = VarianceTracker(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        return self._tracker.get()

    def reset(self) -> None:
        self._tracker.clear()


class AverageTrueRange(Indicator):
    """Mean true range over the window.

    The first bar contributes ``high - low``; later bars use the previous
    bar's close. Used to price ATR order distances.
    """

    kind = IndicatorKind.ATR

    def __init__(
        self,
        window: Window,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"atr_{window.label()}")
        self.window = window
        self._tracker = SumTracker(window, market_hours)
        self._previous: Optional[Bar] = None

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, bar.true_range(self._previous))
        self._tracker.prune(bar.timestamp)
        self._previous = bar

    def get(self) -> Optional[float]:
        return self._tracker.get()

    def reset(self) -> None:
        self._tracker.clear()
        self._previous = None
