"""Integration tests for the backtest engine."""

import io
import logging

import pytest
from rich.console import Console

from strategy_tester.backtest import BacktestEngine, BacktestResult
from strategy_tester.conditions import Constant, Cross
from strategy_tester.configs.run_config import (
    BacktestConfig,
    ExecutionConfig,
    IndicatorsConfig,
    IndicatorSpecConfig,
    SizingConfig,
    WindowConfig,
)
from strategy_tester.exceptions import TimestampOrderError
from strategy_tester.indicators import MovingAverage, Window
from strategy_tester.models.orders import OrderDistance, OrderLifetime, OrderType
from strategy_tester.models.signals import Signal, SignalSide
from strategy_tester.models.trade_log import TradeAction
from strategy_tester.strategies import RuleStrategy, StrategyInterface
from tests.utils.test_helpers import BASE_TS, bars_from_closes, make_bar, minutes

LAST = "ma_1b_close"


def ma_config(size: int = 2, **kwargs) -> BacktestConfig:
    """Config building a single bar-count moving average of the close."""
    spec = IndicatorSpecConfig(kind="moving_average", name=f"ma_{size}b_close", window=WindowConfig(kind="bars", size=size))
    return BacktestConfig(indicators=IndicatorsConfig(specs=[spec]), **kwargs)


def cross_strategy(ticker: str, **kwargs) -> RuleStrategy:
    """Long when the close crosses above 100, out when it crosses back below."""
    return RuleStrategy(
        "cross_100",
        entry=Cross.above(LAST, 100),
        exit=Cross.below(LAST, 100),
        indicators=[MovingAverage(Window.bars(1))],
        **kwargs,
    )


class AlwaysBuy(StrategyInterface):
    """Emits a buy signal on every bar."""

    def __init__(self):
        super().__init__("always_buy")

    def generate_signals(self, bar, indicators, position):
        return [Signal(ticker=bar.ticker, timestamp=bar.timestamp, side=SignalSide.BUY, condition_name="every_bar")]


class TestBarProcessing:
    """Per-bar pipeline and timestamp ordering."""

    def test_moving_average_updates_per_bar(self):
        """Test a 2-bar MA over closes 100/200/300 reads 150 then 250."""
        engine = BacktestEngine(ma_config(2))

        engine.process(make_bar(1000, 100.0))
        engine.process(make_bar(2000, 200.0))
        assert engine.get_indicators("AAPL").get("ma_2b_close") == 150.0

        engine.process(make_bar(3000, 300.0))
        assert engine.get_indicators("AAPL").get("ma_2b_close") == 250.0

    def test_out_of_order_bar_rejected(self, caplog):
        """Test a bar at or before the last timestamp raises and changes nothing."""
        caplog.set_level(logging.DEBUG)
        engine = BacktestEngine(ma_config(2, sizing=SizingConfig(kind="fixed", shares=10)), lambda t: AlwaysBuy())
        engine.process(make_bar(1000, 100.0))
        engine.process(make_bar(2000, 200.0))

        buying_power = engine.portfolio.buying_power
        values = engine.get_indicators("AAPL").values()
        caplog.clear()

        for stale in (2000, 1500):
            with pytest.raises(TimestampOrderError, match="AAPL"):
                engine.process(make_bar(stale, 999.0))

        assert caplog.records == []
        assert engine.last_timestamp("AAPL") == 2000
        assert engine.get_indicators("AAPL").values() == values
        assert engine.portfolio.buying_power == buying_power
        assert engine.get_context("AAPL").bar_count == 2

    def test_order_lifetime_from_config(self):
        """Test the portfolio takes its default order lifetime from the execution config."""
        assert BacktestEngine(ma_config(2)).portfolio.order_lifetime == OrderLifetime.GTC
        engine = BacktestEngine(ma_config(2, execution=ExecutionConfig(order_lifetime="eod")))
        assert engine.portfolio.order_lifetime == OrderLifetime.EOD

    def test_tickers_have_independent_clocks(self):
        """Test interleaved tickers are ordered only against themselves."""
        engine = BacktestEngine(ma_config(2))
        engine.process(make_bar(1000, 100.0, ticker="AAPL"))
        engine.process(make_bar(500, 50.0, ticker="MSFT"))
        engine.process(make_bar(1500, 110.0, ticker="AAPL"))

        with pytest.raises(TimestampOrderError):
            engine.process(make_bar(400, 50.0, ticker="MSFT"))

        assert engine.tickers == ["AAPL", "MSFT"]
        assert engine.ticker_count == 2
        assert engine.has_ticker("MSFT")
        assert engine.get_indicators("MSFT").get("ma_2b_close") == 50.0
        assert engine.get_indicators("GOOG") is None
        assert engine.last_timestamp("GOOG") is None

    def test_session_roll_feeds_daily_volume(self):
        """Test a bar on a new day closes the previous session for ADV."""
        spec = IndicatorSpecConfig(kind="adv", name="adv_2", days=2)
        engine = BacktestEngine(BacktestConfig(indicators=IndicatorsConfig(specs=[spec])))

        engine.process(make_bar(BASE_TS, 100.0, volume=1000))
        engine.process(make_bar(minutes(1), 100.0, volume=1000))
        assert engine.get_indicators("AAPL").get("adv_2") is None

        engine.process(make_bar(BASE_TS + 24 * minutes(60, 0), 100.0, volume=500))
        assert engine.get_indicators("AAPL").get("adv_2") == 2000.0

    def test_reset_ticker(self):
        """Test resetting a ticker clears its clock and indicators."""
        engine = BacktestEngine(ma_config(2))
        engine.process(make_bar(2000, 100.0))

        assert engine.reset_ticker("AAPL")
        assert engine.last_timestamp("AAPL") is None
        assert engine.get_indicators("AAPL").values() == {}
        engine.process(make_bar(1000, 80.0))
        assert engine.get_indicators("AAPL").get("ma_2b_close") == 80.0

        assert not engine.reset_ticker("GOOG")

    def test_reset_all(self):
        """Test reset_all forgets tickers and restores buying power."""
        engine = BacktestEngine(ma_config(2, sizing=SizingConfig(kind="fixed", shares=10)), lambda t: AlwaysBuy())
        engine.process(make_bar(1000, 100.0))
        assert engine.portfolio.buying_power == 99000.0

        engine.reset_all()
        assert engine.tickers == []
        assert engine.portfolio.buying_power == 100000.0
        assert engine.equity_curve == []


class TestStrategyFlow:
    """Signals, fills and exits through the engine."""

    def test_entry_and_exit_round_trip(self):
        """Test a crossing entry and exit produce an ENTRY and an EXIT log."""
        engine = BacktestEngine(BacktestConfig(indicators=IndicatorsConfig(specs=[])), cross_strategy)
        result = engine.run(bars_from_closes([99.0, 101.0, 102.0, 98.0]))

        assert [t.action for t in result.trades] == [TradeAction.ENTRY, TradeAction.EXIT]
        entry, exit_ = result.trades
        assert entry.price == 101.0
        assert entry.strategy_name == "cross_100"
        assert entry.indicator_values == {LAST: 101.0}
        assert exit_.price == 98.0
        assert exit_.realized_pnl == pytest.approx(-300.0)
        assert result.realized_pnl == pytest.approx(-300.0)
        assert result.final_buying_power == pytest.approx(99700.0)
        assert result.open_positions == 0

    def test_stop_loss_exit(self):
        """Test a stop loss closes the position on the bar that breaches it."""
        engine = BacktestEngine(
            BacktestConfig(indicators=IndicatorsConfig(specs=[])),
            lambda ticker: cross_strategy(ticker, stop_loss_pct=5.0),
        )
        result = engine.run(bars_from_closes([99.0, 101.0, 100.5, 95.0]))

        assert len(result.trades) == 2
        assert result.trades[1].condition_name == "stop_loss"
        assert result.trades[1].realized_pnl == pytest.approx(-600.0)

    def test_max_position_time_exit(self):
        """Test a position is closed after the configured holding time."""
        config = BacktestConfig(
            indicators=IndicatorsConfig(specs=[]),
            execution=ExecutionConfig(max_position_minutes=2),
        )
        engine = BacktestEngine(config, cross_strategy)
        result = engine.run(bars_from_closes([99.0, 101.0, 102.0, 103.0, 104.0]))

        assert [t.action for t in result.trades] == [TradeAction.ENTRY, TradeAction.EXIT]
        assert result.trades[1].condition_name == "max_time"
        assert result.trades[1].timestamp == minutes(3)

    def test_strategy_per_ticker(self):
        """Test each ticker gets its own strategy instance."""
        created = []

        def factory(ticker):
            created.append(ticker)
            return cross_strategy(ticker)

        engine = BacktestEngine(BacktestConfig(indicators=IndicatorsConfig(specs=[])), factory)
        engine.process(make_bar(1, 99.0, ticker="AAPL"))
        engine.process(make_bar(1, 99.0, ticker="MSFT"))
        engine.process(make_bar(2, 99.0, ticker="AAPL"))

        assert created == ["AAPL", "MSFT"]
        assert engine.get_context("AAPL").strategy is not engine.get_context("MSFT").strategy


class TestRun:
    """Whole-stream runs and their results."""

    def test_run_records_rejected_bars(self):
        """Test run() skips out-of-order bars instead of raising."""
        engine = BacktestEngine(ma_config(2))
        bars = [make_bar(1000, 100.0), make_bar(900, 90.0), make_bar(2000, 200.0)]
        result = engine.run(bars)

        assert result.rejected_bars == [bars[1]]
        assert len(result.equity_curve) == 2
        assert engine.get_indicators("AAPL").get("ma_2b_close") == 150.0
        assert result.summary()["rejected_bars"] == 1

    def test_invalid_order_does_not_stop_run(self, caplog):
        """Test an order that fails validation is rejected and the stream carries on."""
        caplog.set_level(logging.INFO)
        strategy = RuleStrategy(
            "inverted_stop_limit",
            entry=Constant(1).gt(0),
            order_type=OrderType.stop_limit_buy(OrderDistance.fixed(105.0), OrderDistance.points(1.0)),
        )
        engine = BacktestEngine(ma_config(2), lambda t: strategy)
        bars = bars_from_closes([100.0, 101.0, 102.0])
        result = engine.run(bars)

        assert result.trades == []
        assert result.rejected_bars == []
        assert len(result.equity_curve) == 3
        assert len(engine.portfolio.pending_orders) == 0
        assert engine.get_indicators("AAPL").get("ma_2b_close") == 101.5
        assert len([r for r in caplog.records if "TRADE_REJECTED" in r.getMessage()]) == 3

        # Clock advanced on every bar
        with pytest.raises(TimestampOrderError):
            engine.process(bars[-1])

    def test_result_summary_and_table(self):
        """Test summary metrics, trade table and console report."""
        engine = BacktestEngine(BacktestConfig(indicators=IndicatorsConfig(specs=[])), cross_strategy)
        result = engine.run(bars_from_closes([99.0, 101.0, 111.0, 98.0, 101.0, 120.0, 90.0]))

        summary = result.summary()
        assert summary["total_trades"] == 2
        assert summary["winning_trades"] == 0
        assert summary["losing_trades"] == 2
        assert summary["win_rate"] == 0.0

        df = result.to_dataframe()
        assert len(df) == 4
        assert list(df["action"]) == ["ENTRY", "EXIT", "ENTRY", "EXIT"]
        assert "datetime" in df.columns
        assert f"ind_{LAST}" in df.columns

        output = io.StringIO()
        result.print_summary(Console(file=output, width=100))
        assert "Backtest Summary" in output.getvalue()
        assert "Total Trades" in output.getvalue()

    def test_empty_result(self):
        """Test a run without trades."""
        result = BacktestEngine(ma_config(2)).run([])

        assert result.to_dataframe().empty
        assert result.equity_series().empty
        assert result.max_drawdown() == 0.0
        assert result.summary()["total_return"] == 0.0

    def test_max_drawdown(self):
        """Test drawdown is measured from the running peak."""
        result = BacktestResult(
            trades=[],
            closed_positions=[],
            rejected_bars=[],
            starting_buying_power=100.0,
            final_buying_power=110.0,
            final_equity=110.0,
            realized_pnl=10.0,
            equity_curve=[(1, 100.0), (2, 120.0), (3, 90.0), (4, 110.0)],
        )
        assert result.max_drawdown() == pytest.approx(0.25)
        assert len(result.equity_series()) == 4
