"""Base class and kind registry for streaming indicators."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..models.bar import Bar


class IndicatorKind(str, Enum):
    """Closed set of indicators the factory can build."""

    MOVING_AVERAGE = "moving_average"
    RSI = "rsi"
    MOMENTUM = "momentum"
    HIGH_OF_PERIOD = "high_of_period"
    LOW_OF_PERIOD = "low_of_period"
    STD_DEV = "std_dev"
    VWAP = "vwap"
    ADV = "adv"
    ACV = "acv"
    ATR = "atr"


class Indicator(ABC):
    """A named streaming computation fed one bar at a time.

    Lifecycle: create, then ``update(bar)`` for every bar of one ticker,
    reading ``get()`` at any point. ``get()`` returns None until enough data
    has accumulated.
    """

    kind: IndicatorKind

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def update(self, bar: Bar) -> None:
        """Feed the next bar."""
        pass

    @abstractmethod
    def get(self) -> Optional[float]:
        """Current value, or None when not ready."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Clear all accumulated state."""
        pass

    def on_market_close(self) -> None:
        """Session boundary hook; only session-aggregating indicators use it."""
        pass

    @property
    def is_ready(self) -> bool:
        return self.get() is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, value={self.get()!r})"
