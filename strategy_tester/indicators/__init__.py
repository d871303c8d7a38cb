"""Streaming technical indicators and the window trackers behind them."""

from .base import Indicator, IndicatorKind
from .breakouts import HighOfPeriod, LowOfPeriod
from .factory import build_indicator, build_indicators
from .fields import CommonField, PriceField
from .indicator_set import IndicatorRef, IndicatorSet
from .ma import MovingAverage
from .momentum import RSI, Momentum
from .trackers import ChangeTracker, ExtremumTracker, SumTracker, VarianceTracker, WindowTracker
from .volatility import AverageTrueRange, StandardDeviation
from .volume import VWAP, AverageCurrentVolume, AverageDailyVolume, volume_distribution
from .window import Window, WindowKind

__all__ = [
    "Window",
    "WindowKind",
    "WindowTracker",
    "ExtremumTracker",
    "SumTracker",
    "VarianceTracker",
    "ChangeTracker",
    "CommonField",
    "PriceField",
    "Indicator",
    "IndicatorKind",
    "MovingAverage",
    "RSI",
    "Momentum",
    "HighOfPeriod",
    "LowOfPeriod",
    "StandardDeviation",
    "AverageTrueRange",
    "VWAP",
    "AverageDailyVolume",
    "AverageCurrentVolume",
    "volume_distribution",
    "IndicatorSet",
    "IndicatorRef",
    "build_indicator",
    "build_indicators",
]
