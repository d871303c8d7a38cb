"""Position data model."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..exceptions import PositionAlreadyClosedError


class PositionSide(str, Enum):
    """Position side."""

    LONG = "LONG"
    SHORT = "SHORT"
    NONE = "NONE"


class PositionState(str, Enum):
    """Position lifecycle state."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ExitGuard(str, Enum):
    """Automatic exit rule that closed a position."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    MAX_TIME = "max_time"


@dataclass
class Position:
    """A position created by a filled opening order.

    Mutated only by ``close()``; closing twice raises
    PositionAlreadyClosedError.
    """

    # Required fields (no defaults) - must come first
    ticker: str
    side: PositionSide  # LONG or SHORT
    size: int  # Number of shares
    entry_price: float  # Fill price at entry
    entry_timestamp: int  # Fill timestamp (ns)

    # Optional fields (with defaults)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: PositionState = PositionState.OPEN
    exit_price: Optional[float] = None
    exit_timestamp: Optional[int] = None

    # Exit guards
    stop_loss: Optional[float] = None  # Close when price crosses this level against the position
    take_profit: Optional[float] = None  # Close when price reaches this level in favour of the position
    max_time_ns: Optional[int] = None  # Close once held this long

    def __post_init__(self):
        """Validate position data."""
        if self.side == PositionSide.NONE:
            raise ValueError("Invalid side: NONE, a position must be LONG or SHORT")

        if self.size <= 0:
            raise ValueError(f"Invalid size: {self.size}, must be positive")

        if self.entry_price <= 0:
            raise ValueError(f"Invalid entry_price: {self.entry_price}, must be positive")

    def is_open(self) -> bool:
        """Check if position is still open."""
        return self.state == PositionState.OPEN

    @property
    def is_long(self) -> bool:
        return self.side == PositionSide.LONG

    def close(self, exit_price: float, exit_timestamp: int) -> float:
        """Close the position.

        Args:
            exit_price: Fill price of the closing order
            exit_timestamp: Fill timestamp (ns)

        Returns:
            Realized P&L

        Raises:
            PositionAlreadyClosedError: If the position is already closed
        """
        if not self.is_open():
            raise PositionAlreadyClosedError(
                f"Position {self.id} for {self.ticker} is already closed", self.ticker, self.id
            )
        self.exit_price = exit_price
        self.exit_timestamp = exit_timestamp
        self.state = PositionState.CLOSED
        return self.pnl()

    def _price_pnl(self, price: float) -> float:
        # Long: (price - entry) * size
        # Short: (entry - price) * size
        if self.is_long:
            return (price - self.entry_price) * self.size
        return (self.entry_price - price) * self.size

    def pnl(self) -> float:
        """Realized P&L, 0.0 while the position is open."""
        if self.exit_price is None:
            return 0.0
        return self._price_pnl(self.exit_price)

    def pnl_percent(self) -> float:
        """Realized P&L as a percent of entry notional."""
        return self.pnl() / (self.entry_price * self.size) * 100.0

    def unrealized_pnl(self, current_price: float) -> float:
        """P&L if the position were closed at ``current_price``."""
        return self._price_pnl(current_price)

    def market_value(self, current_price: float) -> float:
        """Notional value of the position at ``current_price``."""
        return current_price * self.size

    def exit_guard_hit(self, price: float, timestamp: int) -> Optional[ExitGuard]:
        """Check the position's exit guards against a price.

        Args:
            price: Current price (bar close)
            timestamp: Current timestamp (ns)

        Returns:
            The first guard that triggered, or None
        """
        if not self.is_open():
            return None

        if self.stop_loss is not None:
            if (self.is_long and price <= self.stop_loss) or (not self.is_long and price >= self.stop_loss):
                return ExitGuard.STOP_LOSS

        if self.take_profit is not None:
            if (self.is_long and price >= self.take_profit) or (not self.is_long and price <= self.take_profit):
                return ExitGuard.TAKE_PROFIT

        if self.max_time_ns is not None and timestamp - self.entry_timestamp >= self.max_time_ns:
            return ExitGuard.MAX_TIME

        return None
