"""Data models for the strategy tester."""

from .bar import Bar
from .orders import (
    DistanceKind,
    Order,
    OrderAction,
    OrderDistance,
    OrderKind,
    OrderLifetime,
    OrderStatus,
    OrderType,
)
from .positions import ExitGuard, Position, PositionSide, PositionState
from .signals import Signal, SignalSide
from .trade_log import TradeAction, TradeLog

__all__ = [
    "Bar",
    "Signal",
    "SignalSide",
    "Order",
    "OrderType",
    "OrderKind",
    "OrderAction",
    "OrderLifetime",
    "OrderStatus",
    "OrderDistance",
    "DistanceKind",
    "Position",
    "PositionSide",
    "PositionState",
    "ExitGuard",
    "TradeLog",
    "TradeAction",
]
