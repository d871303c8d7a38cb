"""Lookback windows for streaming indicators."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..configs.run_config import MarketHoursConfig
from ..data.calendar import NANOS_PER_DAY, NANOS_PER_HOUR, NANOS_PER_MINUTE, session_start_ns

_UNIT_NANOS = {
    "minutes": NANOS_PER_MINUTE,
    "hours": NANOS_PER_HOUR,
    "days": NANOS_PER_DAY,
}


class WindowKind(str, Enum):
    """Unit a window is measured in."""

    BARS = "bars"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


@dataclass(frozen=True)
class Window:
    """A lookback scope: a count of bars or a duration.

    Duration windows cover ``[reference - duration, reference]`` where the
    reference is the timestamp of the most recent push. A rounded window
    starts at a session boundary instead: the top of the hour for hour
    windows, the session open (premarket open when premarket is included)
    for day windows.

    Example:
        >>> Window.days(1).rounded()
        Window(kind=<WindowKind.DAYS: 'days'>, size=1, is_rounded=True)
        >>> Window.minutes(15).rounded() == Window.minutes(15)
        True
    """

    kind: WindowKind
    size: int
    is_rounded: bool = False

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Invalid window size: {self.size}, must be >= 0")

    @classmethod
    def bars(cls, n: int) -> "Window":
        return cls(WindowKind.BARS, n)

    @classmethod
    def minutes(cls, n: int) -> "Window":
        return cls(WindowKind.MINUTES, n)

    @classmethod
    def hours(cls, n: int) -> "Window":
        return cls(WindowKind.HOURS, n)

    @classmethod
    def days(cls, n: int) -> "Window":
        return cls(WindowKind.DAYS, n)

    def rounded(self) -> "Window":
        """Session-aligned copy; bar and minute windows are returned unchanged."""
        if self.kind in (WindowKind.HOURS, WindowKind.DAYS):
            return replace(self, is_rounded=True)
        return self

    @property
    def is_bars(self) -> bool:
        return self.kind == WindowKind.BARS

    def duration_ns(self) -> Optional[int]:
        """Window length in nanoseconds, None for bar windows."""
        if self.is_bars:
            return None
        return self.size * _UNIT_NANOS[self.kind.value]

    def bar_count(self) -> Optional[int]:
        """Number of bars retained, None for duration windows."""
        return self.size if self.is_bars else None

    def contains(self, reference: int, timestamp: int) -> bool:
        """Check if ``timestamp`` lies in ``[reference - duration, reference]``.

        Always False for bar windows, which cannot be judged by time.
        """
        duration = self.duration_ns()
        if duration is None:
            return False
        return reference - duration <= timestamp <= reference

    def start_time(self, reference: int, market_hours: Optional[MarketHoursConfig] = None) -> int:
        """Earliest timestamp this window retains for a given reference.

        Args:
            reference: Timestamp of the most recent push (ns)
            market_hours: Session boundaries for rounded day windows

        Returns:
            Window start in nanoseconds
        """
        if self.is_bars or self.size == 0:
            return reference
        if not self.is_rounded:
            return reference - self.duration_ns()

        if self.kind == WindowKind.HOURS:
            top_of_hour = reference - reference % NANOS_PER_HOUR
            return top_of_hour - (self.size - 1) * NANOS_PER_HOUR

        start = session_start_ns(reference, market_hours)
        if start > reference:
            # Bar before today's session open belongs to the previous session
            start -= NANOS_PER_DAY
        return start - (self.size - 1) * NANOS_PER_DAY

    def retains(self, reference: int, timestamp: int, market_hours: Optional[MarketHoursConfig] = None) -> bool:
        """Check if an entry at ``timestamp`` survives pruning against ``reference``.

        Bar windows are bounded by count on push, so every entry survives a
        time prune. A zero-size duration window retains nothing.
        """
        if self.is_bars:
            return True
        if self.size == 0:
            return False
        return self.start_time(reference, market_hours) <= timestamp <= reference

    def label(self) -> str:
        """Short label used in indicator names, e.g. ``20b`` or ``1dr``."""
        suffix = {"bars": "b", "minutes": "m", "hours": "h", "days": "d"}[self.kind.value]
        return f"{self.size}{suffix}{'r' if self.is_rounded else ''}"
