"""Order model and bar-driven fill simulation.

An order moves through exactly one transition, driven by ``Order.check(bar)``:

    PENDING -> FILLED   (fill_price set, fill_size == size)
    PENDING -> EXPIRED  (end-of-day order past the market close of its day)

Fills are simulated from the bar's OHLC range only. Market orders fill at the
close, limit and stop orders at the bar extreme that crossed the trigger, and
stop-limit orders at their limit price once the stop has traded.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..data.calendar import market_close_ns
from ..exceptions import (
    AtrRequiredError,
    InvalidOrderError,
    OrderAlreadyCompletedError,
    OrderAlreadyFilledError,
    OrderError,
)
from .bar import Bar
from .signals import SignalSide

# Reference price used to validate stop-limit orders built from relative distances
VALIDATION_REFERENCE_PRICE = 100.0


class OrderKind(str, Enum):
    """Order execution style."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"
    STOP_LIMIT = "STOP_LIMIT"


class OrderAction(str, Enum):
    """Whether an order opens a new position or closes an existing one."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"


class OrderLifetime(str, Enum):
    """How long an unfilled order stays live."""

    GTC = "GTC"  # Good till cancelled
    EOD = "EOD"  # Expires after the market close of its submission day


class OrderStatus(str, Enum):
    """Order status."""

    PENDING = "PENDING"  # Submitted, awaiting a fill
    FILLED = "FILLED"  # Executed
    EXPIRED = "EXPIRED"  # End-of-day order that passed its cutoff


class DistanceKind(str, Enum):
    """How an order's trigger price is derived from a reference price."""

    FIXED = "FIXED"  # Absolute price
    PERCENT = "PERCENT"  # Percent of the reference price
    POINTS = "POINTS"  # Absolute offset from the reference price
    ATR = "ATR"  # Multiple of the average true range


@dataclass(frozen=True)
class OrderDistance:
    """Price distance for limit and stop triggers.

    Buy distances are added to the reference price and sell distances are
    subtracted from it. A FIXED distance is an absolute price and ignores the
    reference.

    Example:
        >>> OrderDistance.percent(2.0).price(100.0, is_buy=True)
        102.0
        >>> OrderDistance.points(1.5).price(100.0, is_buy=False)
        98.5
    """

    kind: DistanceKind
    value: float

    def __post_init__(self):
        if self.kind != DistanceKind.FIXED and self.value < 0:
            raise InvalidOrderError(f"Invalid {self.kind.value} distance: {self.value}, must be >= 0")
        if self.kind == DistanceKind.FIXED and self.value <= 0:
            raise InvalidOrderError(f"Invalid fixed price: {self.value}, must be positive")

    @classmethod
    def fixed(cls, price: float) -> "OrderDistance":
        return cls(DistanceKind.FIXED, price)

    @classmethod
    def percent(cls, pct: float) -> "OrderDistance":
        return cls(DistanceKind.PERCENT, pct)

    @classmethod
    def points(cls, points: float) -> "OrderDistance":
        return cls(DistanceKind.POINTS, points)

    @classmethod
    def atr(cls, multiplier: float) -> "OrderDistance":
        return cls(DistanceKind.ATR, multiplier)

    def price(self, reference: float, is_buy: bool, atr: Optional[float] = None) -> float:
        """Resolve this distance to a trigger price.

        Args:
            reference: Reference price (usually the bar close)
            is_buy: True for buy orders (offset upward), False for sells
            atr: Average true range, required for ATR distances

        Returns:
            Trigger price

        Raises:
            AtrRequiredError: If this is an ATR distance and atr is None
        """
        sign = 1.0 if is_buy else -1.0
        if self.kind == DistanceKind.FIXED:
            return self.value
        elif self.kind == DistanceKind.PERCENT:
            return reference * (1.0 + sign * self.value / 100.0)
        elif self.kind == DistanceKind.POINTS:
            return reference + sign * self.value
        if atr is None:
            raise AtrRequiredError("ATR value required for ATR order distance")
        return reference + sign * atr * self.value


@dataclass(frozen=True)
class OrderType:
    """Execution style plus side, with the distances it needs.

    ``trigger`` is the limit price for LIMIT orders and the stop price for
    STOP and STOP_LIMIT orders. ``limit`` is only used by STOP_LIMIT.
    """

    kind: OrderKind
    side: SignalSide
    trigger: Optional[OrderDistance] = None
    limit: Optional[OrderDistance] = None

    def __post_init__(self):
        if self.kind != OrderKind.MARKET and self.trigger is None:
            raise InvalidOrderError(f"{self.kind.value} order requires a trigger distance")
        if self.kind == OrderKind.STOP_LIMIT and self.limit is None:
            raise InvalidOrderError("STOP_LIMIT order requires a limit distance")

    @property
    def is_buy(self) -> bool:
        return self.side == SignalSide.BUY

    def uses_atr(self) -> bool:
        """Check if any distance of this order type is ATR-based."""
        return any(d is not None and d.kind == DistanceKind.ATR for d in (self.trigger, self.limit))

    @classmethod
    def market(cls, side: SignalSide) -> "OrderType":
        return cls(OrderKind.MARKET, side)

    @classmethod
    def market_buy(cls) -> "OrderType":
        return cls(OrderKind.MARKET, SignalSide.BUY)

    @classmethod
    def market_sell(cls) -> "OrderType":
        return cls(OrderKind.MARKET, SignalSide.SELL)

    @classmethod
    def limit_buy(cls, distance: OrderDistance) -> "OrderType":
        return cls(OrderKind.LIMIT, SignalSide.BUY, trigger=distance)

    @classmethod
    def limit_sell(cls, distance: OrderDistance) -> "OrderType":
        return cls(OrderKind.LIMIT, SignalSide.SELL, trigger=distance)

    @classmethod
    def stop_buy(cls, distance: OrderDistance) -> "OrderType":
        return cls(OrderKind.STOP, SignalSide.BUY, trigger=distance)

    @classmethod
    def stop_sell(cls, distance: OrderDistance) -> "OrderType":
        return cls(OrderKind.STOP, SignalSide.SELL, trigger=distance)

    @classmethod
    def stop_limit_buy(cls, stop: OrderDistance, limit: OrderDistance) -> "OrderType":
        return cls(OrderKind.STOP_LIMIT, SignalSide.BUY, trigger=stop, limit=limit)

    @classmethod
    def stop_limit_sell(cls, stop: OrderDistance, limit: OrderDistance) -> "OrderType":
        return cls(OrderKind.STOP_LIMIT, SignalSide.SELL, trigger=stop, limit=limit)

    def with_side(self, side: SignalSide) -> "OrderType":
        """Copy of this order type for the given side."""
        return OrderType(self.kind, side, self.trigger, self.limit)


@dataclass
class Order:
    """Order waiting in the portfolio queue until it fills or expires."""

    # Required fields (no defaults)
    ticker: str
    order_type: OrderType
    action: OrderAction  # OPEN or CLOSE
    size: int  # Requested shares
    timestamp: int  # Submission timestamp (ns)

    # Optional fields (with defaults)
    lifetime: OrderLifetime = OrderLifetime.GTC  # Engine passes ExecutionConfig.order_lifetime
    atr: Optional[float] = None  # ATR at submission, for ATR distances
    reference_price: Optional[float] = None  # Overrides the bar close when resolving distances
    order_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    strategy_name: str = ""
    condition_name: str = ""

    # Exit guards copied onto the position when an opening order fills
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    max_time_ns: Optional[int] = None

    # Fill state
    fill_size: int = 0
    fill_price: Optional[float] = None
    completed: bool = False
    status: OrderStatus = OrderStatus.PENDING

    market_hours: MarketHoursConfig = field(default_factory=MarketHoursConfig, repr=False, compare=False)

    def __post_init__(self):
        """Validate order data."""
        if self.size <= 0:
            raise InvalidOrderError(f"Invalid size: {self.size}, must be positive", self.order_id, self.ticker)

        if self.order_type.uses_atr() and self.atr is None:
            raise AtrRequiredError(
                f"{self.order_type.kind.value} order with ATR distance requires an ATR value",
                self.order_id,
                self.ticker,
            )

        if self.order_type.kind == OrderKind.STOP_LIMIT:
            reference = self.reference_price if self.reference_price is not None else VALIDATION_REFERENCE_PRICE
            stop = self.order_type.trigger.price(reference, self.is_buy, self.atr)
            limit = self.order_type.limit.price(reference, self.is_buy, self.atr)
            if self.is_buy and stop > limit:
                raise InvalidOrderError(
                    f"Invalid stop-limit buy: stop {stop} above limit {limit}", self.order_id, self.ticker
                )
            if not self.is_buy and stop < limit:
                raise InvalidOrderError(
                    f"Invalid stop-limit sell: stop {stop} below limit {limit}", self.order_id, self.ticker
                )

    @property
    def side(self) -> SignalSide:
        return self.order_type.side

    @property
    def is_buy(self) -> bool:
        return self.order_type.is_buy

    @property
    def is_open(self) -> bool:
        """True for orders that open a position."""
        return self.action == OrderAction.OPEN

    @property
    def is_filled(self) -> bool:
        return self.status == OrderStatus.FILLED

    @property
    def is_expired(self) -> bool:
        return self.status == OrderStatus.EXPIRED

    def expiry_ns(self) -> Optional[int]:
        """Cutoff after which an EOD order expires, or None for GTC orders."""
        if self.lifetime == OrderLifetime.EOD:
            return market_close_ns(self.timestamp, self.market_hours)
        return None

    def check(self, bar: Bar) -> OrderStatus:
        """Advance the order against a bar.

        Args:
            bar: Bar for the order's ticker

        Returns:
            The order status after the check

        Raises:
            OrderAlreadyFilledError: If the order already has a fill price
            OrderAlreadyCompletedError: If the order already expired
            OrderError: If the bar belongs to a different ticker
        """
        if self.fill_price is not None:
            raise OrderAlreadyFilledError(f"Order {self.order_id} already filled", self.order_id, self.ticker)
        if self.completed:
            raise OrderAlreadyCompletedError(f"Order {self.order_id} already completed", self.order_id, self.ticker)
        if bar.ticker != self.ticker:
            raise OrderError(f"Order for {self.ticker} checked against {bar.ticker} bar", self.order_id, self.ticker)

        expiry = self.expiry_ns()
        if expiry is not None and bar.timestamp > expiry:
            self.completed = True
            self.status = OrderStatus.EXPIRED
            return self.status

        price = self._match(bar)
        if price is not None:
            self.fill_price = price
            self.fill_size = self.size
            self.completed = True
            self.status = OrderStatus.FILLED
        return self.status

    def _match(self, bar: Bar) -> Optional[float]:
        """Fill price this bar allows, or None if the order does not trigger."""
        kind = self.order_type.kind
        if kind == OrderKind.MARKET:
            return bar.close

        reference = self.reference_price if self.reference_price is not None else bar.close
        trigger = self.order_type.trigger.price(reference, self.is_buy, self.atr)

        if kind == OrderKind.LIMIT:
            if self.is_buy:
                return bar.low if bar.low <= trigger else None
            return bar.high if bar.high >= trigger else None

        if kind == OrderKind.STOP:
            if self.is_buy:
                return bar.high if bar.high >= trigger else None
            return bar.low if bar.low <= trigger else None

        limit = self.order_type.limit.price(reference, self.is_buy, self.atr)
        if self.is_buy:
            if bar.high >= trigger and bar.low <= limit:
                return max(bar.low, limit)
            return None
        if bar.low <= trigger and bar.high >= limit:
            return min(bar.high, limit)
        return None

    def estimated_cost(self, price: float) -> float:
        """Capital needed to fill this order at ``price``."""
        return price * self.size
