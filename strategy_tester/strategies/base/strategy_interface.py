"""Abstract base class for all trading strategies."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ...indicators.indicator_set import IndicatorSet
from ...models.bar import Bar
from ...models.positions import Position
from ...models.signals import Signal


class StrategyInterface(ABC):
    """Abstract base class for all trading strategies.

    The engine creates one strategy instance per ticker, so any state a
    strategy carries between bars (crossing conditions, counters) is already
    per ticker.

    Per bar the engine calls ``generate_signals`` once, after the ticker's
    indicators have been updated with that bar.
    """

    def __init__(self, name: str):
        """Initialize strategy.

        Args:
            name: Strategy name, copied into every trade log
        """
        self.name = name

    def setup(self, indicators: IndicatorSet) -> None:
        """Register the indicators this strategy reads.

        Called once, when the ticker's context is created and before its
        first bar. The set already holds the indicators built from config.

        Args:
            indicators: The ticker's indicator set
        """
        pass

    @abstractmethod
    def generate_signals(
        self, bar: Bar, indicators: IndicatorSet, position: Optional[Position]
    ) -> List[Signal]:
        """Evaluate the strategy on the current bar.

        Args:
            bar: Current bar
            indicators: The ticker's indicators, already updated with ``bar``
            position: Open position for the ticker, or None

        Returns:
            Signals for ``bar.ticker`` (possibly empty)
        """
        pass

    def reset(self) -> None:
        """Forget state carried between bars."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
