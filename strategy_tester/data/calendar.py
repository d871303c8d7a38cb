"""Trading session helpers over nanosecond timestamps.

Bar timestamps are integer nanoseconds since the epoch and are read as UTC
wall-clock times. Session boundaries come from a MarketHoursConfig applied to
the calendar day of the timestamp.
"""

from datetime import time
from typing import Optional

import pandas as pd

from ..configs.run_config import MarketHoursConfig

NANOS_PER_MINUTE = 60 * 1_000_000_000
NANOS_PER_HOUR = 60 * NANOS_PER_MINUTE
NANOS_PER_DAY = 24 * NANOS_PER_HOUR

_DEFAULT_MARKET_HOURS = MarketHoursConfig()


def to_timestamp(timestamp: int) -> pd.Timestamp:
    """Convert nanoseconds since the epoch to a pandas Timestamp."""
    return pd.Timestamp(timestamp, unit="ns")


def session_day(timestamp: int) -> pd.Timestamp:
    """Calendar day (midnight) of a timestamp."""
    return to_timestamp(timestamp).normalize()


def at_time_of_day(timestamp: int, t: time) -> int:
    """Timestamp of wall-clock time ``t`` on the same calendar day as ``timestamp``.

    Args:
        timestamp: Reference timestamp in nanoseconds
        t: Time of day to apply

    Returns:
        Timestamp in nanoseconds
    """
    day = session_day(timestamp)
    offset = pd.Timedelta(hours=t.hour, minutes=t.minute, seconds=t.second, microseconds=t.microsecond)
    return (day + offset).value


def market_open_ns(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Regular market open on the day of ``timestamp``."""
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return at_time_of_day(timestamp, market_hours.market_open)


def market_close_ns(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Regular market close on the day of ``timestamp``; the end-of-day order cutoff."""
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return at_time_of_day(timestamp, market_hours.market_close)


def premarket_open_ns(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Premarket open on the day of ``timestamp``."""
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return at_time_of_day(timestamp, market_hours.premarket_open)


def postmarket_close_ns(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Postmarket close on the day of ``timestamp``."""
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return at_time_of_day(timestamp, market_hours.postmarket_close)


def session_start_ns(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Start of the trading session on the day of ``timestamp``.

    This is the premarket open when premarket bars are included, otherwise
    the regular market open.
    """
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return at_time_of_day(timestamp, market_hours.earliest_valid_time())


def minutes_since_open(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
    """Whole minutes elapsed since the regular market open; negative in premarket."""
    return (timestamp - market_open_ns(timestamp, market_hours)) // NANOS_PER_MINUTE


def is_session_time(timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> bool:
    """Check if a timestamp falls inside the configured session."""
    market_hours = market_hours or _DEFAULT_MARKET_HOURS
    return market_hours.is_valid_time(to_timestamp(timestamp).time())


def is_new_session(previous: int, current: int) -> bool:
    """Check if ``current`` is on a later calendar day than ``previous``."""
    return session_day(current) > session_day(previous)
