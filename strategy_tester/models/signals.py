"""Signal (trading intent) data model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .orders import OrderLifetime, OrderType


class SignalSide(str, Enum):
    """Signal side (buy or sell)."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "SignalSide":
        return SignalSide.SELL if self == SignalSide.BUY else SignalSide.BUY


@dataclass
class Signal:
    """Directional intent emitted by a strategy for one bar.

    The portfolio decides whether the signal opens a position, closes the
    existing one, or is ignored.
    """

    ticker: str
    timestamp: int  # Bar timestamp the signal was generated on (ns)
    side: SignalSide  # BUY or SELL

    condition_name: str = ""  # Name of the condition that fired
    order_type: Optional["OrderType"] = None  # Market order when None
    lifetime: Optional["OrderLifetime"] = None  # Configured default when None
    strength: float = 0.0  # Used by a replace-by-signal ranker
    atr: Optional[float] = None  # Needed for ATR-based order distances

    # Exit guards for the position this signal opens
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None

    metadata: Dict[str, Any] = field(default_factory=dict)  # Strategy-specific data

    def __post_init__(self):
        """Validate signal data."""
        if not self.ticker:
            raise ValueError("Signal ticker must be non-empty")

        if self.order_type is not None and self.order_type.side != self.side:
            raise ValueError(
                f"Signal side {self.side.value} does not match order type side {self.order_type.side.value}"
            )

        if self.stop_loss is not None and self.stop_loss <= 0:
            raise ValueError(f"Invalid stop_loss: {self.stop_loss}, must be positive")

        if self.take_profit is not None and self.take_profit <= 0:
            raise ValueError(f"Invalid take_profit: {self.take_profit}, must be positive")
