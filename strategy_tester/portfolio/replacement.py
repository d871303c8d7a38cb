"""What to do with an opening order the portfolio cannot currently afford."""

from enum import Enum
from typing import Callable, List, Optional

from ..models.positions import Position
from ..models.signals import Signal


class ReplacementPolicy(str, Enum):
    """Policy applied when an opening order's estimated cost exceeds buying power."""

    CANCEL = "cancel"  # Drop the new order
    QUEUE = "queue"  # Enqueue anyway and retry every bar
    REPLACE_OLDEST = "replace_oldest"  # Close the earliest-entered position first
    REPLACE_NEWEST = "replace_newest"  # Close the latest-entered position first
    REPLACE_SIGNAL = "replace_signal"  # Ask a SignalRanker which position to close


# Given the unaffordable signal and the open positions, return the position to
# close in its favour, or None to drop the signal.
SignalRanker = Callable[[Signal, List[Position]], Optional[Position]]


def select_replacement(
    policy: ReplacementPolicy,
    signal: Signal,
    candidates: List[Position],
    ranker: Optional[SignalRanker] = None,
) -> Optional[Position]:
    """Pick the open position a replacement policy would close.

    Args:
        policy: One of the REPLACE_* policies
        signal: Signal whose opening order cannot be afforded
        candidates: Open positions without a pending close order
        ranker: Hook used by REPLACE_SIGNAL

    Returns:
        Position to close, or None if there is nothing to replace
    """
    if not candidates:
        return None
    if policy == ReplacementPolicy.REPLACE_OLDEST:
        return min(candidates, key=lambda p: p.entry_timestamp)
    elif policy == ReplacementPolicy.REPLACE_NEWEST:
        return max(candidates, key=lambda p: p.entry_timestamp)
    elif policy == ReplacementPolicy.REPLACE_SIGNAL and ranker is not None:
        return ranker(signal, candidates)
    return None
