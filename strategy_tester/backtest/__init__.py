"""Backtest orchestration: per-ticker contexts, the engine and its results."""

from .context import TickerContext
from .engine import BacktestEngine, StrategyFactory
from .results import BacktestResult

__all__ = [
    "BacktestEngine",
    "StrategyFactory",
    "TickerContext",
    "BacktestResult",
]
