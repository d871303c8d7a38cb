"""Sliding-window accumulators behind the streaming indicators.

Every tracker consumes ``(timestamp, value)`` pairs and answers one scalar
query in O(1) amortized time. Bar windows are bounded by count on push.
Duration windows are bounded by ``prune(reference)``, which drops entries
older than the window start; the reference is always the timestamp of the
latest push, never wall-clock time.

``get()`` returns None while the tracker holds no data.
"""

import math
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Iterator, List, Optional, Tuple

import numpy as np

from ..configs.run_config import MarketHoursConfig
from .window import Window


class WindowTracker(ABC):
    """Common interface for all window trackers."""

    def __init__(self, window: Window, market_hours: Optional[MarketHoursConfig] = None):
        """Initialize tracker.

        Args:
            window: Lookback window
            market_hours: Session boundaries for rounded day windows
        """
        self.window = window
        self.market_hours = market_hours

    @abstractmethod
    def push(self, timestamp: int, value: float) -> None:
        """Add a value observed at ``timestamp``."""
        pass

    @abstractmethod
    def get(self) -> Optional[float]:
        """Current aggregate, or None when not ready."""
        pass

    @abstractmethod
    def prune(self, current_timestamp: int) -> None:
        """Drop entries that fell out of the window relative to ``current_timestamp``."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget all state."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def in_window(self, current_timestamp: int, timestamp: int) -> bool:
        return self.window.retains(current_timestamp, timestamp, self.market_hours)


class ExtremumTracker(WindowTracker):
    """Running maximum or minimum over a window.

    Keeps a monotonic deque: on push, every entry the new value dominates
    (``>=`` for max, ``<=`` for min) is dropped from the back, so the front is
    always the extremum and each entry is removed at most once.

    Example:
        >>> tracker = ExtremumTracker.max(Window.bars(3))
        >>> for ts, v in enumerate([5.0, 3.0, 4.0, 1.0]):
        ...     tracker.push(ts, v)
        >>> tracker.get()
        4.0
    """

    def __init__(self, window: Window, track_max: bool = True, market_hours: Optional[MarketHoursConfig] = None):
        super().__init__(window, market_hours)
        self.track_max = track_max
        # (push sequence number, timestamp, value); the sequence number
        # bounds bar windows exactly even after dominated entries are dropped
        self._entries: Deque[Tuple[int, int, float]] = deque()
        self._pushes = 0

    @classmethod
    def max(cls, window: Window, market_hours: Optional[MarketHoursConfig] = None) -> "ExtremumTracker":
        return cls(window, track_max=True, market_hours=market_hours)

    @classmethod
    def min(cls, window: Window, market_hours: Optional[MarketHoursConfig] = None) -> "ExtremumTracker":
        return cls(window, track_max=False, market_hours=market_hours)

    def _dominates(self, new_value: float, old_value: float) -> bool:
        if self.track_max:
            return new_value >= old_value
        return new_value <= old_value

    def push(self, timestamp: int, value: float) -> None:
        while self._entries and self._dominates(value, self._entries[-1][2]):
            self._entries.pop()
        self._entries.append((self._pushes, timestamp, value))
        self._pushes += 1

        n = self.window.bar_count()
        if n is not None:
            oldest_kept = self._pushes - n
            while self._entries and self._entries[0][0] < oldest_kept:
                self._entries.popleft()

    def get(self) -> Optional[float]:
        if not self._entries:
            return None
        return self._entries[0][2]

    def prune(self, current_timestamp: int) -> None:
        while self._entries and not self.in_window(current_timestamp, self._entries[0][1]):
            self._entries.popleft()

    def clear(self) -> None:
        self._entries.clear()
        self._pushes = 0

    def __len__(self) -> int:
        return len(self._entries)


class SumTracker(WindowTracker):
    """Running sum and mean over a window."""

    def __init__(self, window: Window, market_hours: Optional[MarketHoursConfig] = None):
        super().__init__(window, market_hours)
        self._values: Deque[Tuple[int, float]] = deque()
        self._sum = 0.0

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def count(self) -> int:
        return len(self._values)

    def average(self) -> Optional[float]:
        if not self._values:
            return None
        return self._sum / len(self._values)

    def values(self) -> Iterator[Tuple[int, float]]:
        """Retained ``(timestamp, value)`` entries, oldest first."""
        return iter(self._values)

    def push(self, timestamp: int, value: float) -> None:
        self._values.append((timestamp, value))
        self._sum += value

        n = self.window.bar_count()
        if n is not None:
            while len(self._values) > n:
                _, old = self._values.popleft()
                self._sum -= old

    def get(self) -> Optional[float]:
        return self.average()

    def prune(self, current_timestamp: int) -> None:
        while self._values and not self.in_window(current_timestamp, self._values[0][0]):
            _, old = self._values.popleft()
            self._sum -= old
        if not self._values:
            self._sum = 0.0

    def clear(self) -> None:
        self._values.clear()
        self._sum = 0.0

    def __len__(self) -> int:
        return len(self._values)


class VarianceTracker(WindowTracker):
    """Population variance and standard deviation over a window.

    The sum of squared deviations is recomputed from the retained values
    after every mutation rather than updated incrementally.
    """

    def __init__(self, window: Window, market_hours: Optional[MarketHoursConfig] = None):
        super().__init__(window, market_hours)
        self._values: Deque[Tuple[int, float]] = deque()
        self._sum = 0.0
        self._sum_sq_diff = 0.0

    def _recompute(self) -> None:
        if not self._values:
            self._sum = 0.0
            self._sum_sq_diff = 0.0
            return
        arr = np.fromiter((v for _, v in self._values), dtype=float, count=len(self._values))
        self._sum_sq_diff = float(np.sum((arr - self._sum / len(arr)) ** 2))

    def mean(self) -> Optional[float]:
        if not self._values:
            return None
        return self._sum / len(self._values)

    def variance(self) -> Optional[float]:
        if not self._values:
            return None
        return self._sum_sq_diff / len(self._values)

    def std_dev(self) -> Optional[float]:
        variance = self.variance()
        return None if variance is None else math.sqrt(variance)

    def push(self, timestamp: int, value: float) -> None:
        self._values.append((timestamp, value))
        self._sum += value

        n = self.window.bar_count()
        if n is not None:
            while len(self._values) > n:
                _, old = self._values.popleft()
                self._sum -= old
        self._recompute()

    def get(self) -> Optional[float]:
        return self.std_dev()

    def prune(self, current_timestamp: int) -> None:
        removed = False
        while self._values and not self.in_window(current_timestamp, self._values[0][0]):
            _, old = self._values.popleft()
            self._sum -= old
            removed = True
        if removed:
            self._recompute()

    def clear(self) -> None:
        self._values.clear()
        self._sum = 0.0
        self._sum_sq_diff = 0.0

    def __len__(self) -> int:
        return len(self._values)


class ChangeTracker(WindowTracker):
    """Window of deltas between consecutive values.

    Deltas are absolute (``new - prev``) or percentage
    (``(new - prev) / prev * 100``, 0.0 when ``prev`` is 0). The first push
    only seeds the previous value. Gains and losses are summed separately,
    with losses reported as positive numbers.
    """

    def __init__(
        self, window: Window, use_percentage: bool = False, market_hours: Optional[MarketHoursConfig] = None
    ):
        super().__init__(window, market_hours)
        self.use_percentage = use_percentage
        self._changes: Deque[Tuple[int, float]] = deque()
        self._last_value: Optional[float] = None
        self._sum = 0.0
        self._sum_gains = 0.0
        self._sum_losses = 0.0

    @classmethod
    def absolute(cls, window: Window, market_hours: Optional[MarketHoursConfig] = None) -> "ChangeTracker":
        return cls(window, use_percentage=False, market_hours=market_hours)

    @classmethod
    def percentage(cls, window: Window, market_hours: Optional[MarketHoursConfig] = None) -> "ChangeTracker":
        return cls(window, use_percentage=True, market_hours=market_hours)

    def _delta(self, previous: float, value: float) -> float:
        if not self.use_percentage:
            return value - previous
        if previous == 0:
            return 0.0
        return (value - previous) / previous * 100.0

    def _add(self, change: float) -> None:
        self._sum += change
        if change > 0:
            self._sum_gains += change
        elif change < 0:
            self._sum_losses -= change

    def _remove(self, change: float) -> None:
        self._sum -= change
        if change > 0:
            self._sum_gains -= change
        elif change < 0:
            self._sum_losses += change

    @property
    def changes(self) -> List[float]:
        return [c for _, c in self._changes]

    def sum(self) -> float:
        return self._sum

    def average(self) -> Optional[float]:
        if not self._changes:
            return None
        return self._sum / len(self._changes)

    def sum_gains(self) -> float:
        return self._sum_gains

    def sum_losses(self) -> float:
        return self._sum_losses

    def average_gain(self) -> Optional[float]:
        if not self._changes:
            return None
        return self._sum_gains / len(self._changes)

    def average_loss(self) -> Optional[float]:
        if not self._changes:
            return None
        return self._sum_losses / len(self._changes)

    def push(self, timestamp: int, value: float) -> None:
        previous, self._last_value = self._last_value, value
        if previous is None:
            return

        change = self._delta(previous, value)
        self._changes.append((timestamp, change))
        self._add(change)

        n = self.window.bar_count()
        if n is not None:
            while len(self._changes) > n:
                _, old = self._changes.popleft()
                self._remove(old)

    def get(self) -> Optional[float]:
        """Most recent delta."""
        if not self._changes:
            return None
        return self._changes[-1][1]

    def prune(self, current_timestamp: int) -> None:
        while self._changes and not self.in_window(current_timestamp, self._changes[0][0]):
            _, old = self._changes.popleft()
            self._remove(old)
        if not self._changes:
            self._sum = self._sum_gains = self._sum_losses = 0.0

    def clear(self) -> None:
        self._changes.clear()
        self._last_value = None
        self._sum = 0.0
        self._sum_gains = 0.0
        self._sum_losses = 0.0

    def __len__(self) -> int:
        return len(self._changes)
