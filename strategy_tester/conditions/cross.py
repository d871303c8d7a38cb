"""Crossing detection between an indicator and a threshold."""

from enum import Enum
from typing import Optional

from ..indicators.indicator_set import IndicatorRef, IndicatorSet
from ..models.bar import Bar
from .condition import Condition, IndicatorValue, Operand, as_value


class CrossDirection(str, Enum):
    """Direction of a crossing."""

    ABOVE = "above"
    BELOW = "below"


class Cross(Condition):
    """Fires on the bar where an indicator crosses a threshold.

    The threshold is any operand: a fixed number, another indicator, or a
    bar field. Only the previous indicator/threshold pair is kept.

    ABOVE fires when ``prev_ind <= prev_thr and ind > thr``.
    BELOW fires when ``prev_ind >= prev_thr and ind < thr``.

    Example:
        >>> golden = Cross.above("ma_50b_close", "ma_200b_close")
        >>> oversold_exit = Cross.above("rsi_14b_close", 30)
    """

    def __init__(
        self,
        indicator: IndicatorRef,
        threshold: Operand,
        direction: CrossDirection,
        name: Optional[str] = None,
    ):
        self.indicator = IndicatorValue(indicator)
        self.threshold = as_value(threshold)
        self.direction = direction
        self.name = name or f"{self.indicator} crosses {direction.value} {self.threshold}"
        self._prev_indicator: Optional[float] = None
        self._prev_threshold: Optional[float] = None

    @classmethod
    def above(cls, indicator: IndicatorRef, threshold: Operand, name: Optional[str] = None) -> "Cross":
        return cls(indicator, threshold, CrossDirection.ABOVE, name)

    @classmethod
    def below(cls, indicator: IndicatorRef, threshold: Operand, name: Optional[str] = None) -> "Cross":
        return cls(indicator, threshold, CrossDirection.BELOW, name)

    def _crossed(self, current_indicator: float, current_threshold: float) -> bool:
        if self._prev_indicator is None or self._prev_threshold is None:
            return False
        if self.direction == CrossDirection.ABOVE:
            return self._prev_indicator <= self._prev_threshold and current_indicator > current_threshold
        return self._prev_indicator >= self._prev_threshold and current_indicator < current_threshold

    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        current_indicator = self.indicator.evaluate(indicators, bar)
        current_threshold = self.threshold.evaluate(indicators, bar)
        if current_indicator is None or current_threshold is None:
            return None
        return self._crossed(current_indicator, current_threshold)

    def step(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        current_indicator = self.indicator.evaluate(indicators, bar)
        current_threshold = self.threshold.evaluate(indicators, bar)
        if current_indicator is None or current_threshold is None:
            return None
        crossed = self._crossed(current_indicator, current_threshold)
        self._prev_indicator = current_indicator
        self._prev_threshold = current_threshold
        return crossed

    def reset(self) -> None:
        self._prev_indicator = None
        self._prev_threshold = None
