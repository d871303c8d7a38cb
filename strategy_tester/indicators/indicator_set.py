"""Per-ticker indicator arena addressed by stable index or name."""

from typing import Dict, Iterator, List, Optional, Union

from ..exceptions import IndicatorError
from ..models.bar import Bar
from .base import Indicator

IndicatorRef = Union[int, str]


class IndicatorSet:
    """Ordered collection of one ticker's indicators.

    Indicators keep the index they were added at, so conditions can hold a
    plain index (or the indicator's name) instead of a reference to the
    indicator object.

    Example:
        >>> indicators = IndicatorSet()
        >>> fast = indicators.add(MovingAverage(Window.bars(5)))
        >>> indicators.update(bar)
        >>> indicators.get(fast) == indicators.get("ma_5b_close")
        True
    """

    def __init__(self, indicators: Optional[List[Indicator]] = None):
        self._indicators: List[Indicator] = []
        self._index: Dict[str, int] = {}
        for indicator in indicators or []:
            self.add(indicator)

    def add(self, indicator: Indicator) -> int:
        """Register an indicator and return its index.

        Raises:
            IndicatorError: If an indicator with the same name is registered
        """
        if indicator.name in self._index:
            raise IndicatorError(f"Duplicate indicator name: {indicator.name}", indicator.name)
        self._index[indicator.name] = len(self._indicators)
        self._indicators.append(indicator)
        return self._index[indicator.name]

    def index_of(self, ref: IndicatorRef) -> int:
        """Resolve a name or index to an index.

        Raises:
            IndicatorError: If the name is unknown or the index out of range
        """
        if isinstance(ref, str):
            if ref not in self._index:
                raise IndicatorError(f"Unknown indicator: {ref}", ref)
            return self._index[ref]
        if not 0 <= ref < len(self._indicators):
            raise IndicatorError(f"Indicator index out of range: {ref}")
        return ref

    def __getitem__(self, ref: IndicatorRef) -> Indicator:
        return self._indicators[self.index_of(ref)]

    def __contains__(self, ref: IndicatorRef) -> bool:
        if isinstance(ref, str):
            return ref in self._index
        return 0 <= ref < len(self._indicators)

    def __iter__(self) -> Iterator[Indicator]:
        return iter(self._indicators)

    def __len__(self) -> int:
        return len(self._indicators)

    @property
    def names(self) -> List[str]:
        return [indicator.name for indicator in self._indicators]

    def get(self, ref: IndicatorRef) -> Optional[float]:
        """Current value of an indicator, None when not ready."""
        return self[ref].get()

    def update(self, bar: Bar) -> None:
        for indicator in self._indicators:
            indicator.update(bar)

    def on_market_close(self) -> None:
        for indicator in self._indicators:
            indicator.on_market_close()

    def values(self) -> Dict[str, float]:
        """Name -> value for every ready indicator."""
        values = {}
        for indicator in self._indicators:
            value = indicator.get()
            if value is not None:
                values[indicator.name] = value
        return values

    def reset(self) -> None:
        for indicator in self._indicators:
            indicator.reset()
