"""Trading session and calendar helpers."""

from .calendar import (
    NANOS_PER_DAY,
    NANOS_PER_HOUR,
    NANOS_PER_MINUTE,
    at_time_of_day,
    is_new_session,
    is_session_time,
    market_close_ns,
    market_open_ns,
    minutes_since_open,
    postmarket_close_ns,
    premarket_open_ns,
    session_day,
    session_start_ns,
    to_timestamp,
)

__all__ = [
    "NANOS_PER_MINUTE",
    "NANOS_PER_HOUR",
    "NANOS_PER_DAY",
    "to_timestamp",
    "session_day",
    "at_time_of_day",
    "market_open_ns",
    "market_close_ns",
    "premarket_open_ns",
    "postmarket_close_ns",
    "session_start_ns",
    "minutes_since_open",
    "is_session_time",
    "is_new_session",
]
