"""Strategy built from an entry condition and an optional exit condition."""

from typing import List, Optional

from ..conditions.condition import Condition
from ..indicators.base import Indicator
from ..indicators.indicator_set import IndicatorRef, IndicatorSet
from ..logging import get_logger
from ..models.bar import Bar
from ..models.orders import OrderLifetime, OrderType
from ..models.positions import Position
from ..models.signals import Signal, SignalSide
from .base.strategy_interface import StrategyInterface

logger = get_logger(__name__)


class RuleStrategy(StrategyInterface):
    """Opens on ``entry`` and closes on ``exit``.

    Both conditions are advanced on every bar, whether or not a position is
    open, so crossing conditions always compare consecutive bars.

    Example:
        >>> fast, slow = MovingAverage(Window.bars(5)), MovingAverage(Window.bars(20))
        >>> strategy = RuleStrategy(
        ...     "ma_cross",
        ...     entry=Cross.above(fast.name, slow.name),
        ...     exit=Cross.below(fast.name, slow.name),
        ...     indicators=[fast, slow],
        ... )
    """

    def __init__(
        self,
        name: str,
        entry: Condition,
        exit: Optional[Condition] = None,
        side: SignalSide = SignalSide.BUY,
        indicators: Optional[List[Indicator]] = None,
        order_type: Optional[OrderType] = None,
        lifetime: Optional[OrderLifetime] = None,
        stop_loss_pct: Optional[float] = None,
        take_profit_pct: Optional[float] = None,
        atr: Optional[IndicatorRef] = None,
    ):
        """Initialize rule strategy.

        Args:
            name: Strategy name
            entry: Condition that opens a position
            exit: Condition that closes it (positions only close on guards when None)
            side: BUY opens longs, SELL opens shorts
            indicators: Indicators the conditions read, added to the ticker's set
            order_type: Order type for entries (market when None)
            lifetime: Lifetime for entry orders (configured default when None)
            stop_loss_pct: Stop-loss distance from the signal bar's close, in percent
            take_profit_pct: Take-profit distance from the signal bar's close, in percent
            atr: Indicator whose value is attached to signals, required for ATR order distances

        Raises:
            ValueError: If order_type's side differs from side, or a percent is not positive
        """
        super().__init__(name)
        if order_type is not None and order_type.side != side:
            raise ValueError(f"Order type side {order_type.side.value} does not match strategy side {side.value}")
        for label, pct in (("stop_loss_pct", stop_loss_pct), ("take_profit_pct", take_profit_pct)):
            if pct is not None and pct <= 0:
                raise ValueError(f"Invalid {label}: {pct}, must be positive")

        self.entry = entry
        self.exit = exit
        self.side = side
        self.indicators = list(indicators or [])
        self.order_type = order_type
        self.lifetime = lifetime
        self.stop_loss_pct = stop_loss_pct
        self.take_profit_pct = take_profit_pct
        self.atr = atr

    def setup(self, indicators: IndicatorSet) -> None:
        for indicator in self.indicators:
            # Config may already provide an identically named indicator
            if indicator.name not in indicators:
                indicators.add(indicator)

    def generate_signals(
        self, bar: Bar, indicators: IndicatorSet, position: Optional[Position]
    ) -> List[Signal]:
        entry_fired = self.entry.update(indicators, bar)
        exit_fired = self.exit.update(indicators, bar) if self.exit is not None else False

        if position is None:
            if not entry_fired:
                return []
            return self._entry_signal(bar, indicators)

        if exit_fired:
            side = SignalSide.SELL if position.is_long else SignalSide.BUY
            return [Signal(ticker=bar.ticker, timestamp=bar.timestamp, side=side, condition_name=self.exit.name)]
        return []

    def _entry_signal(self, bar: Bar, indicators: IndicatorSet) -> List[Signal]:
        atr = indicators.get(self.atr) if self.atr is not None else None
        if self.order_type is not None and self.order_type.uses_atr() and atr is None:
            logger.debug(f"{self.name}: skipping {bar.ticker} entry, ATR not ready")
            return []

        sign = 1.0 if self.side == SignalSide.BUY else -1.0
        stop_loss = None
        take_profit = None
        if self.stop_loss_pct is not None:
            stop_loss = bar.close * (1.0 - sign * self.stop_loss_pct / 100.0)
        if self.take_profit_pct is not None:
            take_profit = bar.close * (1.0 + sign * self.take_profit_pct / 100.0)

        return [
            Signal(
                ticker=bar.ticker,
                timestamp=bar.timestamp,
                side=self.side,
                condition_name=self.entry.name,
                order_type=self.order_type,
                lifetime=self.lifetime,
                atr=atr,
                stop_loss=stop_loss,
                take_profit=take_profit,
            )
        ]

    def reset(self) -> None:
        self.entry.reset()
        if self.exit is not None:
            self.exit.reset()
