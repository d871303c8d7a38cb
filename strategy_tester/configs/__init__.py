"""Configuration models for backtest runs."""

from .run_config import (
    BacktestConfig,
    ExecutionConfig,
    IndicatorsConfig,
    IndicatorSpecConfig,
    MarketHoursConfig,
    OutputConfig,
    PortfolioConfig,
    SizingConfig,
    WindowConfig,
    default_indicator_specs,
)

__all__ = [
    "BacktestConfig",
    "ExecutionConfig",
    "IndicatorsConfig",
    "IndicatorSpecConfig",
    "MarketHoursConfig",
    "OutputConfig",
    "PortfolioConfig",
    "SizingConfig",
    "WindowConfig",
    "default_indicator_specs",
]
