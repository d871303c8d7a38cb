"""Portfolio and position management."""

from .portfolio import Portfolio
from .position_sizing import SizingKind, SizingStrategy
from .replacement import ReplacementPolicy, SignalRanker, select_replacement

__all__ = [
    "Portfolio",
    "SizingStrategy",
    "SizingKind",
    "ReplacementPolicy",
    "SignalRanker",
    "select_replacement",
]
