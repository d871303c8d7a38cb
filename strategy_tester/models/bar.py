"""OHLCV bar data model."""

from dataclasses import dataclass
from typing import Optional

import pandas as pd


@dataclass(frozen=True)
class Bar:
    """Single OHLCV bar for a ticker at a specific instant."""

    timestamp: int  # Nanoseconds since the epoch (UTC)
    ticker: str  # Ticker symbol (e.g., "AAPL")
    open: float  # Opening price
    high: float  # High price
    low: float  # Low price
    close: float  # Closing price
    volume: int  # Shares traded

    def __post_init__(self):
        """Validate OHLC relationships."""
        if self.close <= 0 or self.open <= 0 or self.high <= 0 or self.low <= 0:
            raise ValueError(f"Invalid prices: {self.ticker} {self.timestamp}, prices must be positive")

        if not (self.low <= self.open <= self.high):
            raise ValueError(
                f"Invalid OHLC: {self.ticker} {self.timestamp}, "
                f"open ({self.open}) must be between low ({self.low}) and high ({self.high})"
            )

        if not (self.low <= self.close <= self.high):
            raise ValueError(
                f"Invalid OHLC: {self.ticker} {self.timestamp}, "
                f"close ({self.close}) must be between low ({self.low}) and high ({self.high})"
            )

        if self.volume < 0:
            raise ValueError(f"Negative volume: {self.ticker} {self.timestamp}, volume={self.volume}")

    @property
    def datetime(self) -> pd.Timestamp:
        """Bar timestamp as a pandas Timestamp."""
        return pd.Timestamp(self.timestamp, unit="ns")

    @property
    def median_price(self) -> float:
        """(high + low) / 2"""
        return (self.high + self.low) / 2.0

    @property
    def typical_price(self) -> float:
        """(high + low + close) / 3"""
        return (self.high + self.low + self.close) / 3.0

    @property
    def weighted_close(self) -> float:
        """(high + low + 2 * close) / 4"""
        return (self.high + self.low + 2.0 * self.close) / 4.0

    def true_range(self, previous: Optional["Bar"] = None) -> float:
        """True range against the previous bar's close.

        Args:
            previous: Previous bar for the same ticker, or None for the first bar

        Returns:
            max(high - low, |high - prev close|, |low - prev close|), or
            high - low when there is no previous bar
        """
        if previous is None:
            return self.high - self.low
        return max(
            self.high - self.low,
            abs(self.high - previous.close),
            abs(self.low - previous.close),
        )
