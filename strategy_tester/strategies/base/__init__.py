"""Base strategy interface and the data models strategies emit."""

# Re-export from models for convenience
from ...models.signals import Signal, SignalSide

from .strategy_interface import StrategyInterface

__all__ = [
    "StrategyInterface",
    "Signal",
    "SignalSide",
]
