"""Moving average indicator."""

from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..models.bar import Bar
from .base import Indicator, IndicatorKind
from .fields import CommonField
from .trackers import SumTracker
from .window import Window


class MovingAverage(Indicator):
    """Simple moving average of a bar field.

    Reads the mean of whatever the window currently holds, so a 20-bar
    average is available from the first bar onward.

    Example:
        >>> ma = MovingAverage(Window.bars(2), CommonField.CLOSE)
        >>> # after closes 100, 200 -> 150.0; after 300 -> 250.0
    """

    kind = IndicatorKind.MOVING_AVERAGE

    def __init__(
        self,
        window: Window,
        field: CommonField = CommonField.CLOSE,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"ma_{window.label()}_{field.value}")
        self.window = window
        self.field = field
        self._tracker = SumTracker(window, market_hours)

    def update(self, bar: Bar) -> None:
        self._tracker.push(bar.timestamp, self.field.extract(bar))
        self._tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        return self._tracker.get()

    def reset(self) -> None:
        self._tracker.clear()
