"""Test utilities for strategy tester tests."""

from .test_helpers import (
    BASE_TS,
    bars_from_closes,
    create_sample_bar,
    create_sample_order,
    create_sample_position,
    create_sample_signal,
    make_bar,
    minutes,
)

__all__ = [
    "BASE_TS",
    "minutes",
    "make_bar",
    "bars_from_closes",
    "create_sample_bar",
    "create_sample_signal",
    "create_sample_order",
    "create_sample_position",
]
