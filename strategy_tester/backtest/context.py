"""Per-ticker state held by the backtest engine."""

from dataclasses import dataclass
from typing import Optional

from ..indicators.indicator_set import IndicatorSet
from ..models.bar import Bar
from ..strategies.base.strategy_interface import StrategyInterface


@dataclass
class TickerContext:
    """One ticker's indicators, strategy instance and logical clock."""

    ticker: str
    indicators: IndicatorSet
    strategy: Optional[StrategyInterface] = None
    last_timestamp: Optional[int] = None  # Timestamp of the last accepted bar (ns)
    last_bar: Optional[Bar] = None
    bar_count: int = 0

    def accepts(self, timestamp: int) -> bool:
        """Check if a bar at ``timestamp`` is strictly after the last accepted one."""
        return self.last_timestamp is None or timestamp > self.last_timestamp

    def record(self, bar: Bar) -> None:
        """Advance the clock to an accepted bar."""
        self.last_timestamp = bar.timestamp
        self.last_bar = bar
        self.bar_count += 1

    def reset(self) -> None:
        """Clear indicator, strategy and clock state, keeping the instances."""
        self.indicators.reset()
        if self.strategy is not None:
            self.strategy.reset()
        self.last_timestamp = None
        self.last_bar = None
        self.bar_count = 0
