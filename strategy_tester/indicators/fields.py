"""Bar field selectors used by indicators and conditions."""

from enum import Enum

from ..models.bar import Bar


class CommonField(str, Enum):
    """Any scalar that can be read off a bar."""

    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    VOLUME = "volume"
    MEDIAN = "median"  # (high + low) / 2
    TYPICAL = "typical"  # (high + low + close) / 3
    WEIGHTED_CLOSE = "weighted_close"  # (high + low + 2 * close) / 4

    def extract(self, bar: Bar) -> float:
        """Read this field from a bar."""
        if self == CommonField.OPEN:
            return bar.open
        elif self == CommonField.HIGH:
            return bar.high
        elif self == CommonField.LOW:
            return bar.low
        elif self == CommonField.CLOSE:
            return bar.close
        elif self == CommonField.VOLUME:
            return float(bar.volume)
        elif self == CommonField.MEDIAN:
            return bar.median_price
        elif self == CommonField.TYPICAL:
            return bar.typical_price
        return bar.weighted_close


class PriceField(str, Enum):
    """Price-only fields, used where volume makes no sense (VWAP)."""

    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    MEDIAN = "median"
    TYPICAL = "typical"

    def extract(self, bar: Bar) -> float:
        """Read this price from a bar."""
        return CommonField(self.value).extract(bar)
