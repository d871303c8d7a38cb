"""Entry/exit conditions over indicators and bar fields."""

from .condition import (
    AllOf,
    AnyOf,
    Compare,
    Comparison,
    Condition,
    Constant,
    FieldValue,
    IndicatorValue,
    Not,
    Operand,
    Value,
    as_value,
)
from .cross import Cross, CrossDirection

__all__ = [
    "Value",
    "IndicatorValue",
    "Constant",
    "FieldValue",
    "Operand",
    "as_value",
    "Comparison",
    "Condition",
    "Compare",
    "AllOf",
    "AnyOf",
    "Not",
    "Cross",
    "CrossDirection",
]
