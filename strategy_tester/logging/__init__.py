"""Logging utilities for the strategy tester."""

from .logger import (
    PerformanceContext,
    StructuredFormatter,
    TradeEventType,
    format_timestamp,
    get_logger,
    log_performance_metric,
    log_portfolio_snapshot,
    log_signal_generation,
    log_trade_event,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "format_timestamp",
    "TradeEventType",
    "StructuredFormatter",
    "PerformanceContext",
    "log_trade_event",
    "log_signal_generation",
    "log_portfolio_snapshot",
    "log_performance_metric",
]
