"""Backtest configuration Pydantic models."""

from datetime import time
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError


class MarketHoursConfig(BaseModel):
    """Session boundaries used for end-of-day expiry and day-window rounding.

    Times are wall-clock times applied to the calendar day of a bar's
    timestamp, which is read as UTC.
    """
    include_premarket: bool = False
    include_postmarket: bool = False
    market_open: time = time(9, 30)
    market_close: time = time(16, 0)
    premarket_open: time = time(4, 0)
    postmarket_close: time = time(20, 0)

    @model_validator(mode='after')
    def validate_session_order(self) -> "MarketHoursConfig":
        """Require premarket_open <= market_open < market_close <= postmarket_close."""
        if not self.premarket_open <= self.market_open:
            raise ValueError(
                f"premarket_open ({self.premarket_open}) must not be after market_open ({self.market_open})"
            )
        if not self.market_open < self.market_close:
            raise ValueError(
                f"market_open ({self.market_open}) must be before market_close ({self.market_close})"
            )
        if not self.market_close <= self.postmarket_close:
            raise ValueError(
                f"postmarket_close ({self.postmarket_close}) must not be before market_close ({self.market_close})"
            )
        return self

    def earliest_valid_time(self) -> time:
        """First time of day a bar is considered in session."""
        return self.premarket_open if self.include_premarket else self.market_open

    def latest_valid_time(self) -> time:
        """Last time of day a bar is considered in session."""
        return self.postmarket_close if self.include_postmarket else self.market_close

    def is_valid_time(self, t: time) -> bool:
        """Check if a time of day falls inside the configured session.

        Args:
            t: Time of day to check

        Returns:
            True if earliest_valid_time() <= t <= latest_valid_time()
        """
        return self.earliest_valid_time() <= t <= self.latest_valid_time()


class PortfolioConfig(BaseModel):
    """Portfolio configuration."""
    starting_buying_power: float = Field(default=100000.0, gt=0)
    slippage: float = Field(default=0.0, ge=0)  # Carried for reporting, not applied to fills
    replacement_policy: Literal[
        "cancel", "queue", "replace_oldest", "replace_newest", "replace_signal"
    ] = "queue"


class SizingConfig(BaseModel):
    """Position sizing configuration.

    Only the parameters of the selected ``kind`` are required.
    """
    kind: Literal["fixed", "fixed_dollar", "percent_of_account", "risk_based"] = "fixed"
    shares: Optional[int] = 100
    amount: Optional[float] = None
    percent: Optional[float] = None
    risk_percent: Optional[float] = None
    stop_distance: Optional[float] = None

    @model_validator(mode='after')
    def validate_parameters(self) -> "SizingConfig":
        """Check that the selected sizing kind has its parameters."""
        required = {
            "fixed": ["shares"],
            "fixed_dollar": ["amount"],
            "percent_of_account": ["percent"],
            "risk_based": ["risk_percent", "stop_distance"],
        }[self.kind]
        for name in required:
            value = getattr(self, name)
            if value is None:
                raise ValueError(f"sizing kind '{self.kind}' requires '{name}'")
            if value <= 0:
                raise ValueError(f"sizing parameter '{name}' must be positive, got {value}")
        return self

    def to_strategy(self):
        """Build the SizingStrategy described by this config."""
        from ..portfolio.position_sizing import SizingStrategy

        if self.kind == "fixed":
            return SizingStrategy.fixed(self.shares)
        elif self.kind == "fixed_dollar":
            return SizingStrategy.fixed_dollar(self.amount)
        elif self.kind == "percent_of_account":
            return SizingStrategy.percent_of_account(self.percent)
        return SizingStrategy.risk_based(self.risk_percent, self.stop_distance)


class WindowConfig(BaseModel):
    """Lookback window configuration."""
    kind: Literal["bars", "minutes", "hours", "days"] = "bars"
    size: int = Field(default=20, ge=0)
    rounded: bool = False

    def to_window(self):
        """Build the Window described by this config."""
        from ..indicators.window import Window, WindowKind

        window = Window(WindowKind(self.kind), self.size)
        return window.rounded() if self.rounded else window


class IndicatorSpecConfig(BaseModel):
    """A single indicator to build for every ticker."""
    kind: Literal[
        "moving_average", "rsi", "momentum", "high_of_period", "low_of_period",
        "std_dev", "vwap", "adv", "acv", "atr",
    ]
    name: Optional[str] = None  # Defaults to a name derived from kind/window/field
    window: WindowConfig = Field(default_factory=WindowConfig)
    field: str = "close"
    days: int = Field(default=20, gt=0)  # Session count for adv / acv

    @field_validator('field')
    @classmethod
    def validate_field(cls, v: str) -> str:
        """Normalize and check the bar field name."""
        valid = {"open", "high", "low", "close", "volume", "median", "typical", "weighted_close"}
        v = v.lower()
        if v not in valid:
            raise ValueError(f"Invalid field: {v}, must be one of {sorted(valid)}")
        return v


def default_indicator_specs() -> List[IndicatorSpecConfig]:
    """Indicator set built for a ticker when nothing else is configured."""
    return [
        IndicatorSpecConfig(kind="moving_average", window=WindowConfig(kind="bars", size=20), field="close"),
        IndicatorSpecConfig(kind="rsi", window=WindowConfig(kind="bars", size=14), field="close"),
        IndicatorSpecConfig(kind="high_of_period", window=WindowConfig(kind="days", size=1), field="high"),
        IndicatorSpecConfig(kind="low_of_period", window=WindowConfig(kind="days", size=1), field="low"),
        IndicatorSpecConfig(kind="vwap", window=WindowConfig(kind="days", size=1), field="typical"),
    ]


class IndicatorsConfig(BaseModel):
    """Indicators configuration."""
    enabled: bool = True
    specs: List[IndicatorSpecConfig] = Field(default_factory=default_indicator_specs)


class ExecutionConfig(BaseModel):
    """Order and position lifetime configuration."""
    order_lifetime: Literal["gtc", "eod"] = "gtc"
    max_position_minutes: Optional[int] = Field(default=None, gt=0)  # Forced exit after holding this long


class OutputConfig(BaseModel):
    """Logging output configuration."""
    log_level: str = "INFO"
    log_file: Optional[str] = None  # No file handler when unset
    log_json_format: bool = False
    log_use_rich: bool = True

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid:
            raise ValueError(f"Invalid log_level: {v}, must be one of {sorted(valid)}")
        return v


class BacktestConfig(BaseModel):
    """Complete backtest configuration."""
    market_hours: MarketHoursConfig = Field(default_factory=MarketHoursConfig)
    portfolio: PortfolioConfig = Field(default_factory=PortfolioConfig)
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    indicators: IndicatorsConfig = Field(default_factory=IndicatorsConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "BacktestConfig":
        """Load backtest configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            BacktestConfig instance

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file is not valid YAML or fails validation
        """
        path_obj = Path(path)
        if not path_obj.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", config_path=path) from e

        try:
            return cls(**(data or {}))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid backtest configuration in {path}: {e.error_count()} error(s)",
                config_path=path,
                errors=e.errors(),
            ) from e

    def to_yaml(self, path: str) -> None:
        """Save backtest configuration to YAML file.

        Args:
            path: Path to save YAML configuration file
        """
        with open(path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
