"""Build indicators from configuration."""

from typing import Callable, Dict, List, Optional

from ..configs.run_config import IndicatorsConfig, IndicatorSpecConfig, MarketHoursConfig
from ..exceptions import IndicatorError
from .base import Indicator, IndicatorKind
from .breakouts import HighOfPeriod, LowOfPeriod
from .fields import CommonField, PriceField
from .ma import MovingAverage
from .momentum import RSI, Momentum
from .volatility import AverageTrueRange, StandardDeviation
from .volume import VWAP, AverageCurrentVolume, AverageDailyVolume


def _field_builder(cls) -> Callable[[IndicatorSpecConfig, Optional[MarketHoursConfig]], Indicator]:
    def build(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig]) -> Indicator:
        return cls(spec.window.to_window(), CommonField(spec.field), name=spec.name, market_hours=market_hours)
    return build


def _build_vwap(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig]) -> Indicator:
    try:
        price_field = PriceField(spec.field)
    except ValueError:
        raise IndicatorError(f"VWAP needs a price field, got '{spec.field}'", spec.name) from None
    return VWAP(spec.window.to_window(), price_field, name=spec.name, market_hours=market_hours)


def _build_atr(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig]) -> Indicator:
    return AverageTrueRange(spec.window.to_window(), name=spec.name, market_hours=market_hours)


def _build_adv(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig]) -> Indicator:
    return AverageDailyVolume(spec.days, name=spec.name, market_hours=market_hours)


def _build_acv(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig]) -> Indicator:
    return AverageCurrentVolume(spec.days, name=spec.name, market_hours=market_hours)


_BUILDERS: Dict[IndicatorKind, Callable[[IndicatorSpecConfig, Optional[MarketHoursConfig]], Indicator]] = {
    IndicatorKind.MOVING_AVERAGE: _field_builder(MovingAverage),
    IndicatorKind.RSI: _field_builder(RSI),
    IndicatorKind.MOMENTUM: _field_builder(Momentum),
    IndicatorKind.HIGH_OF_PERIOD: _field_builder(HighOfPeriod),
    IndicatorKind.LOW_OF_PERIOD: _field_builder(LowOfPeriod),
    IndicatorKind.STD_DEV: _field_builder(StandardDeviation),
    IndicatorKind.VWAP: _build_vwap,
    IndicatorKind.ATR: _build_atr,
    IndicatorKind.ADV: _build_adv,
    IndicatorKind.ACV: _build_acv,
}


def build_indicator(spec: IndicatorSpecConfig, market_hours: Optional[MarketHoursConfig] = None) -> Indicator:
    """Build one indicator from its spec.

    Args:
        spec: Indicator spec (kind, window, field, name)
        market_hours: Session boundaries for rounded windows and ACV

    Returns:
        A fresh indicator with no state

    Raises:
        IndicatorError: If the configured field does not suit the indicator kind
    """
    return _BUILDERS[IndicatorKind(spec.kind)](spec, market_hours)


def build_indicators(config: IndicatorsConfig, market_hours: Optional[MarketHoursConfig] = None) -> List[Indicator]:
    """Build the configured indicator list, empty when indicators are disabled."""
    if not config.enabled:
        return []
    return [build_indicator(spec, market_hours) for spec in config.specs]
