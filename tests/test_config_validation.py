"""Tests for backtest configuration models and YAML loading."""

from datetime import time

import pytest
import yaml
from pydantic import ValidationError

from strategy_tester.configs.run_config import (
    BacktestConfig,
    ExecutionConfig,
    IndicatorSpecConfig,
    MarketHoursConfig,
    OutputConfig,
    PortfolioConfig,
    SizingConfig,
    WindowConfig,
)
from strategy_tester.exceptions import ConfigurationError
from strategy_tester.indicators.window import Window
from strategy_tester.portfolio import SizingStrategy


class TestDefaults:
    """Default configuration values."""

    def test_backtest_defaults(self):
        """Test an empty config is valid and uses documented defaults."""
        config = BacktestConfig()

        assert config.portfolio.starting_buying_power == 100000.0
        assert config.portfolio.replacement_policy == "queue"
        assert config.sizing.kind == "fixed"
        assert config.sizing.shares == 100
        assert config.execution.order_lifetime == "gtc"
        assert config.execution.max_position_minutes is None
        assert config.market_hours.market_open == time(9, 30)
        assert config.market_hours.market_close == time(16, 0)
        assert config.output.log_file is None
        assert [spec.kind for spec in config.indicators.specs] == [
            "moving_average", "rsi", "high_of_period", "low_of_period", "vwap",
        ]


class TestValidators:
    """Field and model validators."""

    def test_market_hours_order(self):
        """Test the session must open before it closes."""
        with pytest.raises(ValidationError, match="market_open"):
            MarketHoursConfig(market_open=time(16, 0), market_close=time(9, 30))
        with pytest.raises(ValidationError, match="premarket_open"):
            MarketHoursConfig(premarket_open=time(10, 0))

    def test_market_hours_valid_time(self):
        """Test session membership with and without extended hours."""
        hours = MarketHoursConfig()
        assert hours.is_valid_time(time(9, 30))
        assert hours.is_valid_time(time(16, 0))
        assert not hours.is_valid_time(time(8, 0))
        assert MarketHoursConfig(include_premarket=True).is_valid_time(time(8, 0))
        assert MarketHoursConfig(include_postmarket=True).latest_valid_time() == time(20, 0)

    def test_buying_power_positive(self):
        """Test starting buying power must be positive."""
        with pytest.raises(ValidationError):
            PortfolioConfig(starting_buying_power=0)

    def test_unknown_replacement_policy(self):
        """Test only known replacement policies are accepted."""
        with pytest.raises(ValidationError):
            PortfolioConfig(replacement_policy="liquidate_all")

    def test_sizing_requires_kind_parameters(self):
        """Test each sizing kind needs its own parameters."""
        with pytest.raises(ValidationError, match="requires 'amount'"):
            SizingConfig(kind="fixed_dollar")
        with pytest.raises(ValidationError, match="stop_distance"):
            SizingConfig(kind="risk_based", risk_percent=1.0)
        with pytest.raises(ValidationError, match="must be positive"):
            SizingConfig(kind="percent_of_account", percent=-5.0)

    def test_indicator_field_normalized(self):
        """Test field names are lower-cased and checked."""
        assert IndicatorSpecConfig(kind="rsi", field="CLOSE").field == "close"
        with pytest.raises(ValidationError, match="Invalid field"):
            IndicatorSpecConfig(kind="rsi", field="vwap")

    def test_window_size_non_negative(self):
        """Test negative window sizes are rejected."""
        with pytest.raises(ValidationError):
            WindowConfig(size=-1)

    def test_execution_lifetime(self):
        """Test order lifetime and holding time limits."""
        assert ExecutionConfig(order_lifetime="eod").order_lifetime == "eod"
        with pytest.raises(ValidationError):
            ExecutionConfig(order_lifetime="ioc")
        with pytest.raises(ValidationError):
            ExecutionConfig(max_position_minutes=0)

    def test_log_level(self):
        """Test log levels are normalized and checked."""
        assert OutputConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValidationError, match="Invalid log_level"):
            OutputConfig(log_level="verbose")


class TestConversions:
    """Config objects turned into runtime objects."""

    def test_sizing_to_strategy(self):
        """Test each sizing kind maps to its strategy."""
        assert SizingConfig(kind="fixed", shares=5).to_strategy() == SizingStrategy.fixed(5)
        assert SizingConfig(kind="fixed_dollar", amount=1000.0).to_strategy() == SizingStrategy.fixed_dollar(1000.0)
        assert SizingConfig(kind="percent_of_account", percent=10.0).to_strategy() == (
            SizingStrategy.percent_of_account(10.0)
        )
        assert SizingConfig(kind="risk_based", risk_percent=1.0, stop_distance=2.0).to_strategy() == (
            SizingStrategy.risk_based(1.0, 2.0)
        )

    def test_window_to_window(self):
        """Test window configs map to windows."""
        assert WindowConfig(kind="bars", size=20).to_window() == Window.bars(20)
        assert WindowConfig(kind="days", size=1, rounded=True).to_window() == Window.days(1).rounded()
        # Minute windows have no session boundary to round to
        assert WindowConfig(kind="minutes", size=15, rounded=True).to_window() == Window.minutes(15)


class TestYaml:
    """YAML persistence."""

    def test_round_trip(self, tmp_path):
        """Test saving and loading keeps every setting."""
        config = BacktestConfig(
            portfolio=PortfolioConfig(starting_buying_power=50000.0, replacement_policy="replace_oldest"),
            sizing=SizingConfig(kind="fixed_dollar", amount=5000.0),
            execution=ExecutionConfig(order_lifetime="eod", max_position_minutes=30),
            market_hours=MarketHoursConfig(include_premarket=True),
        )
        path = tmp_path / "backtest.yaml"
        config.to_yaml(str(path))

        loaded = BacktestConfig.from_yaml(str(path))
        assert loaded == config

    def test_partial_file(self, tmp_path):
        """Test a file only overriding a few fields."""
        path = tmp_path / "partial.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "portfolio": {"replacement_policy": "cancel"},
                    "indicators": {
                        "specs": [{"kind": "moving_average", "name": "ma_2b_close", "window": {"kind": "bars", "size": 2}}]
                    },
                }
            )
        )

        config = BacktestConfig.from_yaml(str(path))
        assert config.portfolio.replacement_policy == "cancel"
        assert config.portfolio.starting_buying_power == 100000.0
        assert [spec.name for spec in config.indicators.specs] == ["ma_2b_close"]

    def test_empty_file(self, tmp_path):
        """Test an empty file gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert BacktestConfig.from_yaml(str(path)) == BacktestConfig()

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            BacktestConfig.from_yaml(str(tmp_path / "missing.yaml"))

    def test_invalid_values(self, tmp_path):
        """Test invalid values raise ConfigurationError with the validation errors."""
        path = tmp_path / "bad.yaml"
        path.write_text("sizing:\n  kind: fixed_dollar\n")
        with pytest.raises(ConfigurationError) as exc_info:
            BacktestConfig.from_yaml(str(path))

        assert exc_info.value.config_path == str(path)
        assert len(exc_info.value.errors) == 1
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_malformed_yaml(self, tmp_path):
        """Test unparsable YAML raises ConfigurationError."""
        path = tmp_path / "broken.yaml"
        path.write_text("portfolio: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            BacktestConfig.from_yaml(str(path))
