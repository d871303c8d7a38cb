"""Volume indicators: VWAP, average daily volume and average current volume."""

from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..data.calendar import minutes_since_open
from ..models.bar import Bar
from .base import Indicator, IndicatorKind
from .fields import CommonField, PriceField
from .trackers import SumTracker
from .window import Window

# Intraday cumulative volume curve. GAMMA_A = 46^A, GAMMA_B = 46^B,
# EPSILON = 77^B, XI = (100 * GAMMA_B / EPSILON - 60) / (GAMMA_B / EPSILON - 1)
A = 0.73
B = 2.3
GAMMA_A = 14.819293933533726
GAMMA_B = 15437.746769286306
EPSILON = 2247135.5315805604
XI = 73.12134508107815


def volume_distribution(interval: int) -> float:
    """Expected fraction of daily volume traded by ``interval`` minutes after the open.

    Two power-law segments: 8% at the open rising to 60% at minute 46, then
    a second curve for the rest of the session. The second segment is not
    bounded below, so callers must treat a non-positive result as unusable.

    Args:
        interval: Minutes since market open (negative in premarket)

    Returns:
        Fraction of a full day's volume, 0.08 before the open
    """
    if interval < 0:
        return 0.08
    if interval <= 46:
        return (8.0 + 52.0 * interval ** A / GAMMA_A) / 100.0
    return (XI + (60.0 - XI) * interval ** B / GAMMA_B) / 100.0


class VWAP(Indicator):
    """Volume-weighted average price over the window.

    VWAP = sum(price * volume) / sum(volume); None while the window holds no
    volume.
    """

    kind = IndicatorKind.VWAP

    def __init__(
        self,
        window: Window,
        price_field: PriceField = PriceField.TYPICAL,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"vwap_{window.label()}_{price_field.value}")
        self.window = window
        self.price_field = price_field
        self._pv_tracker = SumTracker(window, market_hours)
        self._volume_tracker = SumTracker(window, market_hours)

    def update(self, bar: Bar) -> None:
        price = self.price_field.extract(bar)
        volume = CommonField.VOLUME.extract(bar)

        self._pv_tracker.push(bar.timestamp, price * volume)
        self._pv_tracker.prune(bar.timestamp)

        self._volume_tracker.push(bar.timestamp, volume)
        self._volume_tracker.prune(bar.timestamp)

    def get(self) -> Optional[float]:
        total_volume = self._volume_tracker.sum
        if total_volume == 0:
            return None
        return self._pv_tracker.sum / total_volume

    def reset(self) -> None:
        self._pv_tracker.clear()
        self._volume_tracker.clear()


class AverageDailyVolume(Indicator):
    """Average total volume of the last ``days`` completed sessions.

    Volume accumulates through the session; ``on_market_close()`` records the
    session total and starts a new one. Not ready until one session closed.
    """

    kind = IndicatorKind.ADV

    def __init__(self, days: int = 20, name: Optional[str] = None, market_hours: Optional[MarketHoursConfig] = None):
        super().__init__(name or f"adv_{days}")
        self.days = days
        self._current_day = SumTracker(Window.days(1).rounded(), market_hours)
        self._daily_totals = SumTracker(Window.bars(days), market_hours)
        self._last_timestamp: Optional[int] = None

    @property
    def current_day_volume(self) -> float:
        return self._current_day.sum

    def update(self, bar: Bar) -> None:
        self._current_day.push(bar.timestamp, CommonField.VOLUME.extract(bar))
        self._current_day.prune(bar.timestamp)
        self._last_timestamp = bar.timestamp

    def on_market_close(self) -> None:
        if self._last_timestamp is None:
            return
        self._daily_totals.push(self._last_timestamp, self._current_day.sum)
        self._daily_totals.prune(self._last_timestamp)
        self._current_day.clear()

    def get(self) -> Optional[float]:
        return self._daily_totals.get()

    def reset(self) -> None:
        self._current_day.clear()
        self._daily_totals.clear()
        self._last_timestamp = None


class AverageCurrentVolume(Indicator):
    """Session volume so far relative to what an average day has traded by now.

    ACV = current_volume / (ADV * volume_distribution(minutes since open)).
    Values above 1.0 mean the session is running heavier than usual.
    """

    kind = IndicatorKind.ACV

    def __init__(
        self,
        days: int = 20,
        premarket_volume: float = 0.0,
        name: Optional[str] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        super().__init__(name or f"acv_{days}")
        self.days = days
        self.market_hours = market_hours
        self.premarket_volume = premarket_volume
        self._current_day = SumTracker(Window.days(1).rounded(), market_hours)
        self._daily_totals = SumTracker(Window.bars(days), market_hours)
        self._last_timestamp: Optional[int] = None

    @property
    def current_volume(self) -> float:
        """Session volume so far, including premarket volume."""
        return self.premarket_volume + self._current_day.sum

    def adv(self) -> Optional[float]:
        return self._daily_totals.get()

    def update(self, bar: Bar) -> None:
        self._current_day.push(bar.timestamp, CommonField.VOLUME.extract(bar))
        self._current_day.prune(bar.timestamp)
        self._last_timestamp = bar.timestamp

    def on_market_close(self) -> None:
        if self._last_timestamp is None:
            return
        self._daily_totals.push(self._last_timestamp, self.current_volume)
        self._daily_totals.prune(self._last_timestamp)
        self._current_day.clear()
        self.premarket_volume = 0.0

    def get(self) -> Optional[float]:
        adv = self.adv()
        if adv is None or adv <= 0 or self._last_timestamp is None:
            return None
        distribution = volume_distribution(minutes_since_open(self._last_timestamp, self.market_hours))
        if distribution <= 0:
            return None
        return self.current_volume / (adv * distribution)

    def reset(self) -> None:
        self._current_day.clear()
        self._daily_totals.clear()
        self._last_timestamp = None
        self.premarket_volume = 0.0
