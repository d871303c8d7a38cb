"""Trade log record emitted for every portfolio mutation."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from .positions import Position


class TradeAction(str, Enum):
    """Whether the trade opened or closed a position."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"


@dataclass(frozen=True)
class TradeLog:
    """Immutable snapshot of a position at the moment it was opened or closed."""

    position: Position  # Copy, unaffected by later changes to the live position
    action: TradeAction
    strategy_name: str
    condition_name: str
    indicator_values: Dict[str, float] = field(default_factory=dict)
    realized_pnl: Optional[float] = None  # Set on EXIT only

    @classmethod
    def capture(
        cls,
        position: Position,
        action: TradeAction,
        strategy_name: str,
        condition_name: str,
        indicator_values: Optional[Dict[str, float]] = None,
    ) -> "TradeLog":
        """Build a log entry from a live position.

        Args:
            position: Position just opened or closed
            action: ENTRY or EXIT
            strategy_name: Strategy that produced the signal
            condition_name: Condition that fired
            indicator_values: Ready indicator values for the ticker at that bar

        Returns:
            TradeLog holding a copy of the position
        """
        return cls(
            position=replace(position),
            action=action,
            strategy_name=strategy_name,
            condition_name=condition_name,
            indicator_values=dict(indicator_values or {}),
            realized_pnl=position.pnl() if action == TradeAction.EXIT else None,
        )

    @property
    def ticker(self) -> str:
        return self.position.ticker

    @property
    def timestamp(self) -> int:
        """Entry timestamp for ENTRY logs, exit timestamp for EXIT logs."""
        if self.action == TradeAction.EXIT and self.position.exit_timestamp is not None:
            return self.position.exit_timestamp
        return self.position.entry_timestamp

    @property
    def price(self) -> float:
        """Fill price of the trade."""
        if self.action == TradeAction.EXIT and self.position.exit_price is not None:
            return self.position.exit_price
        return self.position.entry_price

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into a plain record (one row of a trade table)."""
        return {
            "position_id": self.position.id,
            "ticker": self.ticker,
            "action": self.action.value,
            "side": self.position.side.value,
            "size": self.position.size,
            "timestamp": self.timestamp,
            "price": self.price,
            "entry_price": self.position.entry_price,
            "exit_price": self.position.exit_price,
            "realized_pnl": self.realized_pnl,
            "strategy": self.strategy_name,
            "condition": self.condition_name,
            **{f"ind_{name}": value for name, value in self.indicator_values.items()},
        }
