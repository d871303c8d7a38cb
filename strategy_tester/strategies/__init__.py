"""Trading strategies module.

This module provides:
- The strategy interface the backtest engine drives
- A rule-based strategy built from entry/exit conditions
"""

from .base.strategy_interface import StrategyInterface
from .rule_strategy import RuleStrategy

__all__ = [
    "StrategyInterface",
    "RuleStrategy",
]
