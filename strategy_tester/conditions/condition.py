"""Operands, comparisons and boolean combinators for entry/exit rules.

A condition is evaluated against a ticker's IndicatorSet and the current bar.
Any operand that is not ready (an indicator returning None) leaves the
comparison that uses it undecided, and an undecided rule evaluates to False.

Example:
    >>> fast, slow = IndicatorValue("ma_5b_close"), IndicatorValue("ma_20b_close")
    >>> rule = fast.gt(slow) & IndicatorValue("rsi_14b_close").lt(70)
    >>> rule.update(indicators, bar)
"""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from ..indicators.fields import CommonField
from ..indicators.indicator_set import IndicatorRef, IndicatorSet
from ..models.bar import Bar

# Tolerance for EQ / NE comparisons
EPSILON = sys.float_info.epsilon


class Value(ABC):
    """Operand of a comparison."""

    @abstractmethod
    def evaluate(self, indicators: IndicatorSet, bar: Bar) -> Optional[float]:
        """Current value, or None when not ready."""
        pass

    def gt(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.GT, as_value(other))

    def ge(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.GE, as_value(other))

    def lt(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.LT, as_value(other))

    def le(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.LE, as_value(other))

    def eq(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.EQ, as_value(other))

    def ne(self, other: "Operand") -> "Compare":
        return Compare(self, Comparison.NE, as_value(other))


@dataclass(frozen=True, eq=False)
class IndicatorValue(Value):
    """An indicator of the ticker's set, by index or name."""

    ref: IndicatorRef

    def evaluate(self, indicators: IndicatorSet, bar: Bar) -> Optional[float]:
        return indicators.get(self.ref)

    def __str__(self) -> str:
        return str(self.ref)


@dataclass(frozen=True, eq=False)
class Constant(Value):
    """A fixed number."""

    value: float

    def evaluate(self, indicators: IndicatorSet, bar: Bar) -> Optional[float]:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True, eq=False)
class FieldValue(Value):
    """A field of the current bar."""

    field: CommonField

    def evaluate(self, indicators: IndicatorSet, bar: Bar) -> Optional[float]:
        return self.field.extract(bar)

    def __str__(self) -> str:
        return self.field.value


Operand = Union[Value, CommonField, float, int, str]


def as_value(operand: Operand) -> Value:
    """Coerce a number, bar field or indicator name into a Value."""
    if isinstance(operand, Value):
        return operand
    if isinstance(operand, CommonField):
        return FieldValue(operand)
    if isinstance(operand, str):
        return IndicatorValue(operand)
    if isinstance(operand, (int, float)):
        return Constant(float(operand))
    raise TypeError(f"Cannot use {type(operand).__name__} as a condition operand")


class Comparison(str, Enum):
    """Binary comparison operators."""

    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    EQ = "=="
    NE = "!="

    def evaluate(self, left: float, right: float) -> bool:
        if self == Comparison.GT:
            return left > right
        elif self == Comparison.GE:
            return left >= right
        elif self == Comparison.LT:
            return left < right
        elif self == Comparison.LE:
            return left <= right
        elif self == Comparison.EQ:
            return abs(left - right) < EPSILON
        return abs(left - right) >= EPSILON


def _all(results: List[Optional[bool]]) -> Optional[bool]:
    if any(r is False for r in results):
        return False
    if any(r is None for r in results):
        return None
    return True


def _any(results: List[Optional[bool]]) -> Optional[bool]:
    if any(r is True for r in results):
        return True
    if any(r is None for r in results):
        return None
    return False


class Condition(ABC):
    """Boolean rule over indicators and the current bar.

    ``check`` returns None when the rule cannot be decided because an
    operand is not ready; ``None`` propagates through AND/OR/NOT and the
    public ``evaluate``/``update`` report it as False, so a negated rule
    never fires on missing data.

    ``update`` advances any crossing state and returns the result for this
    bar; call it exactly once per bar. ``evaluate`` reads the result without
    advancing state.
    """

    name: str = ""

    @abstractmethod
    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        pass

    def step(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        """Like ``check``, but advances state carried between bars."""
        return self.check(indicators, bar)

    def evaluate(self, indicators: IndicatorSet, bar: Bar) -> bool:
        return self.check(indicators, bar) is True

    def update(self, indicators: IndicatorSet, bar: Bar) -> bool:
        return self.step(indicators, bar) is True

    def reset(self) -> None:
        """Forget any state carried between bars."""
        pass

    def named(self, name: str) -> "Condition":
        """Set the name reported in trade logs and return self."""
        self.name = name
        return self

    def __and__(self, other: "Condition") -> "AllOf":
        return AllOf([self, other])

    def __or__(self, other: "Condition") -> "AnyOf":
        return AnyOf([self, other])

    def __invert__(self) -> "Not":
        return Not(self)


class Compare(Condition):
    """``left op right``; undecided when either side is not ready."""

    def __init__(self, left: Value, op: Comparison, right: Value, name: Optional[str] = None):
        self.left = left
        self.op = op
        self.right = right
        self.name = name or f"{left} {op.value} {right}"

    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        left = self.left.evaluate(indicators, bar)
        right = self.right.evaluate(indicators, bar)
        if left is None or right is None:
            return None
        return self.op.evaluate(left, right)


class AllOf(Condition):
    """True when every child condition is true."""

    def __init__(self, conditions: List[Condition], name: Optional[str] = None):
        self.conditions = list(conditions)
        self.name = name or " AND ".join(f"({c.name})" for c in self.conditions)

    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        return _all([c.check(indicators, bar) for c in self.conditions])

    def step(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        # Every child must see every bar, so no short-circuit
        return _all([c.step(indicators, bar) for c in self.conditions])

    def reset(self) -> None:
        for c in self.conditions:
            c.reset()


class AnyOf(Condition):
    """True when at least one child condition is true."""

    def __init__(self, conditions: List[Condition], name: Optional[str] = None):
        self.conditions = list(conditions)
        self.name = name or " OR ".join(f"({c.name})" for c in self.conditions)

    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        return _any([c.check(indicators, bar) for c in self.conditions])

    def step(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        return _any([c.step(indicators, bar) for c in self.conditions])

    def reset(self) -> None:
        for c in self.conditions:
            c.reset()


class Not(Condition):
    """Negation of a condition; stays undecided when the inner one is."""

    def __init__(self, condition: Condition, name: Optional[str] = None):
        self.condition = condition
        self.name = name or f"NOT ({condition.name})"

    def check(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        result = self.condition.check(indicators, bar)
        return None if result is None else not result

    def step(self, indicators: IndicatorSet, bar: Bar) -> Optional[bool]:
        result = self.condition.step(indicators, bar)
        return None if result is None else not result

    def reset(self) -> None:
        self.condition.reset()
