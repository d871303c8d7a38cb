"""Position sizing strategies."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SizingKind(str, Enum):
    """How the share count of a new position is chosen."""

    FIXED = "fixed"  # Constant number of shares
    FIXED_DOLLAR = "fixed_dollar"  # Constant notional
    PERCENT_OF_ACCOUNT = "percent_of_account"  # Fraction of account value
    RISK_BASED = "risk_based"  # Fraction of account value risked over a stop distance


@dataclass(frozen=True)
class SizingStrategy:
    """Share count calculator for opening orders.

    Closing orders never go through sizing; they use the open position's size.

    Example:
        >>> SizingStrategy.fixed_dollar(10000.0).calculate(price=150.0, account_value=100000.0)
        66
        >>> SizingStrategy.risk_based(1.0, stop_distance=2.5).calculate(price=150.0, account_value=100000.0)
        400
    """

    kind: SizingKind
    shares: Optional[int] = None
    amount: Optional[float] = None
    percent: Optional[float] = None
    risk_percent: Optional[float] = None
    stop_distance: Optional[float] = None

    def __post_init__(self):
        """Validate that the kind's parameters are present and positive."""
        required = {
            SizingKind.FIXED: ("shares",),
            SizingKind.FIXED_DOLLAR: ("amount",),
            SizingKind.PERCENT_OF_ACCOUNT: ("percent",),
            SizingKind.RISK_BASED: ("risk_percent", "stop_distance"),
        }[self.kind]
        for name in required:
            value = getattr(self, name)
            if value is None or value <= 0:
                raise ValueError(f"Invalid {name}: {value}, must be positive for {self.kind.value} sizing")

    @classmethod
    def fixed(cls, shares: int) -> "SizingStrategy":
        return cls(SizingKind.FIXED, shares=shares)

    @classmethod
    def fixed_dollar(cls, amount: float) -> "SizingStrategy":
        return cls(SizingKind.FIXED_DOLLAR, amount=amount)

    @classmethod
    def percent_of_account(cls, percent: float) -> "SizingStrategy":
        return cls(SizingKind.PERCENT_OF_ACCOUNT, percent=percent)

    @classmethod
    def risk_based(cls, risk_percent: float, stop_distance: float) -> "SizingStrategy":
        return cls(SizingKind.RISK_BASED, risk_percent=risk_percent, stop_distance=stop_distance)

    def calculate(self, price: float, account_value: float) -> int:
        """Calculate the number of shares to open.

        Args:
            price: Current price of the ticker
            account_value: Account value (buying power)

        Returns:
            Whole shares, 0 when nothing can be bought
        """
        if self.kind == SizingKind.FIXED:
            return self.shares

        if price <= 0 or account_value <= 0:
            return 0

        if self.kind == SizingKind.FIXED_DOLLAR:
            return max(0, math.floor(self.amount / price))
        elif self.kind == SizingKind.PERCENT_OF_ACCOUNT:
            return max(0, math.floor(account_value * self.percent / 100.0 / price))

        risk_dollars = account_value * self.risk_percent / 100.0
        return max(0, math.floor(risk_dollars / self.stop_distance))
