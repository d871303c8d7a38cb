"""Per-ticker backtest orchestrator."""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..configs.run_config import BacktestConfig
from ..data.calendar import NANOS_PER_MINUTE, is_new_session
from ..exceptions import TimestampOrderError
from ..indicators.factory import build_indicators
from ..indicators.indicator_set import IndicatorSet
from ..logging import PerformanceContext, get_logger, log_signal_generation
from ..models.bar import Bar
from ..models.orders import OrderLifetime
from ..models.trade_log import TradeLog
from ..portfolio.portfolio import Portfolio
from ..portfolio.replacement import ReplacementPolicy, SignalRanker
from ..strategies.base.strategy_interface import StrategyInterface
from .context import TickerContext
from .results import BacktestResult

logger = get_logger(__name__)

# Builds a fresh strategy instance for a ticker
StrategyFactory = Callable[[str], StrategyInterface]


class BacktestEngine:
    """Single-pass backtest driver fed one bar at a time.

    Every ticker has its own logical clock: a bar whose timestamp is not
    strictly after the previous accepted bar of the same ticker is rejected
    with TimestampOrderError before anything is mutated. Bars of different
    tickers may interleave freely.

    For an accepted bar the engine, in order:

    1. marks the ticker's price in the portfolio
    2. rolls session-aggregating indicators when the bar starts a new day
    3. updates the ticker's indicators
    4. queues closes for positions whose exit guards triggered
    5. runs the strategy and submits its signals
    6. checks the ticker's pending orders against the bar
    7. advances the ticker's clock

    Example:
        >>> engine = BacktestEngine(BacktestConfig(), lambda ticker: RuleStrategy("rsi", entry=...))
        >>> for bar in bars:
        ...     trade_logs = engine.process(bar)
    """

    def __init__(
        self,
        config: Optional[BacktestConfig] = None,
        strategy_factory: Optional[StrategyFactory] = None,
        signal_ranker: Optional[SignalRanker] = None,
    ):
        """Initialize backtest engine.

        Args:
            config: Backtest configuration (defaults when None)
            strategy_factory: Called with a ticker on its first bar; no signals when None
            signal_ranker: Hook for the replace_signal replacement policy
        """
        self.config = config or BacktestConfig()
        self.strategy_factory = strategy_factory
        self.signal_ranker = signal_ranker

        self._contexts: Dict[str, TickerContext] = {}
        self.portfolio = self._create_portfolio()
        self.rejected_bars: List[Bar] = []
        self.equity_curve: List[Tuple[int, float]] = []  # (timestamp ns, equity) per accepted bar

    def _create_portfolio(self) -> Portfolio:
        max_minutes = self.config.execution.max_position_minutes
        return Portfolio(
            buying_power=self.config.portfolio.starting_buying_power,
            replacement_policy=ReplacementPolicy(self.config.portfolio.replacement_policy),
            sizing=self.config.sizing.to_strategy(),
            signal_ranker=self.signal_ranker,
            order_lifetime=OrderLifetime(self.config.execution.order_lifetime.upper()),
            max_position_ns=max_minutes * NANOS_PER_MINUTE if max_minutes is not None else None,
            market_hours=self.config.market_hours,
        )

    def _create_context(self, ticker: str) -> TickerContext:
        indicators = IndicatorSet(build_indicators(self.config.indicators, self.config.market_hours))
        strategy = self.strategy_factory(ticker) if self.strategy_factory is not None else None
        if strategy is not None:
            strategy.setup(indicators)
        logger.debug(f"Created context for {ticker} with indicators {indicators.names}")
        return TickerContext(ticker=ticker, indicators=indicators, strategy=strategy)

    # ------------------------------------------------------------------ bars

    def process(self, bar: Bar) -> List[TradeLog]:
        """Run one bar through the pipeline.

        Args:
            bar: Next bar of any ticker

        Returns:
            Trade logs of the orders that executed on this bar

        Raises:
            TimestampOrderError: If the bar does not advance its ticker's clock
        """
        context = self._contexts.get(bar.ticker)
        if context is not None and not context.accepts(bar.timestamp):
            raise TimestampOrderError(bar.ticker, bar.timestamp, context.last_timestamp)
        if context is None:
            context = self._create_context(bar.ticker)
            self._contexts[bar.ticker] = context

        self.portfolio.mark_price(bar.ticker, bar.close)

        if context.last_timestamp is not None and is_new_session(context.last_timestamp, bar.timestamp):
            context.indicators.on_market_close()
        context.indicators.update(bar)

        self.portfolio.check_exit_guards(bar)

        if context.strategy is not None:
            position = self.portfolio.open_position(bar.ticker)
            signals = context.strategy.generate_signals(bar, context.indicators, position)
            for signal in signals:
                log_signal_generation(
                    logger, bar.ticker, bar.timestamp, True,
                    side=signal.side.value, condition=signal.condition_name, strategy=context.strategy.name,
                )
                self.portfolio.submit_signal(signal, bar.close, context.strategy.name)

        trade_logs = self.portfolio.process_bar(bar, context.indicators.values())
        context.record(bar)
        self.equity_curve.append((bar.timestamp, self.portfolio.equity()))
        return trade_logs

    def run(self, bars: Iterable[Bar]) -> BacktestResult:
        """Process a stream of bars, skipping (and recording) out-of-order ones.

        Args:
            bars: Bars in arrival order, any mix of tickers

        Returns:
            BacktestResult for the whole stream
        """
        trades: List[TradeLog] = []
        with PerformanceContext(logger, "backtest_run") as perf:
            count = 0
            for bar in bars:
                count += 1
                try:
                    trades.extend(self.process(bar))
                except TimestampOrderError as e:
                    logger.warning(f"Rejected bar: {e}")
                    self.rejected_bars.append(bar)
            perf.fields["bars"] = count

        if self.equity_curve:
            self.portfolio.log_snapshot(self.equity_curve[-1][0])

        result = BacktestResult(
            trades=trades,
            closed_positions=list(self.portfolio.closed_positions),
            rejected_bars=list(self.rejected_bars),
            starting_buying_power=self.portfolio.starting_buying_power,
            final_buying_power=self.portfolio.buying_power,
            final_equity=self.portfolio.equity(),
            realized_pnl=self.portfolio.realized_pnl,
            open_positions=len(self.portfolio.positions),
            equity_curve=list(self.equity_curve),
        )
        result.log_summary()
        return result

    # ------------------------------------------------------------------ accessors

    def get_indicators(self, ticker: str) -> Optional[IndicatorSet]:
        """Indicator set of a ticker, None before its first bar."""
        context = self._contexts.get(ticker)
        return context.indicators if context is not None else None

    def get_context(self, ticker: str) -> Optional[TickerContext]:
        return self._contexts.get(ticker)

    def last_timestamp(self, ticker: str) -> Optional[int]:
        """Timestamp of the ticker's last accepted bar, None before its first bar."""
        context = self._contexts.get(ticker)
        return context.last_timestamp if context is not None else None

    @property
    def tickers(self) -> List[str]:
        """Tickers seen so far, in first-seen order."""
        return list(self._contexts)

    def has_ticker(self, ticker: str) -> bool:
        return ticker in self._contexts

    @property
    def ticker_count(self) -> int:
        return len(self._contexts)

    def reset_ticker(self, ticker: str) -> bool:
        """Forget a ticker's indicators, strategy state and clock.

        Portfolio positions and pending orders for the ticker are kept.

        Returns:
            True if the ticker was known
        """
        context = self._contexts.get(ticker)
        if context is None:
            return False
        logger.info(f"Reset context for {ticker} after {context.bar_count} bars")
        context.reset()
        return True

    def reset_all(self) -> None:
        """Forget every ticker context and start over with a fresh portfolio."""
        self._contexts.clear()
        self.portfolio = self._create_portfolio()
        self.rejected_bars = []
        self.equity_curve = []
