"""Custom exception classes for the strategy tester.

This module provides specific exception types for the failure categories the
backtesting core surfaces: out-of-order bars, order lifecycle contract
violations, invalid orders, position misuse and bad configuration.

Capital shortfalls and not-ready indicators are deliberately absent: the first
is routed through the replacement policy and the second is represented as
``None``.
"""

from typing import Any, Dict, List, Optional


class StrategyTesterError(Exception):
    """Base exception for all strategy tester errors."""
    pass


class TimestampOrderError(StrategyTesterError):
    """Raised when a bar does not advance its ticker's logical clock."""

    def __init__(self, ticker: str, current: int, previous: int):
        super().__init__(
            f"Timestamp order violation for {ticker}: "
            f"current={current} is not after previous={previous}"
        )
        self.ticker = ticker
        self.current = current
        self.previous = previous


class OrderError(StrategyTesterError):
    """Base exception for order-related errors."""

    def __init__(self, message: str, order_id: Optional[str] = None, ticker: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id
        self.ticker = ticker


class OrderAlreadyCompletedError(OrderError):
    """Raised when an expired or filled order is checked again."""
    pass


class OrderAlreadyFilledError(OrderAlreadyCompletedError):
    """Raised when an order that already carries a fill price is checked again."""
    pass


class InvalidOrderError(OrderError):
    """Raised when an order cannot be constructed as requested."""
    pass


class AtrRequiredError(InvalidOrderError):
    """Raised when an ATR distance is priced without an ATR value."""
    pass


class PositionError(StrategyTesterError):
    """Base exception for position-related errors."""

    def __init__(self, message: str, ticker: Optional[str] = None, position_id: Optional[str] = None):
        super().__init__(message)
        self.ticker = ticker
        self.position_id = position_id


class PositionAlreadyClosedError(PositionError):
    """Raised when a closed position is closed a second time."""
    pass


class ConfigurationError(StrategyTesterError):
    """Base exception for configuration errors."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message)
        self.config_path = config_path
        self.field = field
        self.errors = errors or []


class IndicatorError(StrategyTesterError):
    """Raised when an indicator cannot be built or looked up."""

    def __init__(self, message: str, indicator_name: Optional[str] = None, ticker: Optional[str] = None):
        super().__init__(message)
        self.indicator_name = indicator_name
        self.ticker = ticker
