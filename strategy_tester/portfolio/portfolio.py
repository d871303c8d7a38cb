"""Portfolio state: buying power, positions and the pending-order queue."""

from collections import deque
from typing import Deque, Dict, List, Optional

from ..configs.run_config import MarketHoursConfig
from ..exceptions import InvalidOrderError
from ..logging import TradeEventType, get_logger, log_portfolio_snapshot, log_trade_event
from ..models.bar import Bar
from ..models.orders import Order, OrderAction, OrderLifetime, OrderStatus, OrderType
from ..models.positions import ExitGuard, Position, PositionSide
from ..models.signals import Signal, SignalSide
from ..models.trade_log import TradeAction, TradeLog
from .position_sizing import SizingStrategy
from .replacement import ReplacementPolicy, SignalRanker, select_replacement

logger = get_logger(__name__)


class Portfolio:
    """Capital and position manager fed by signals and bars.

    Cash model: opening a long debits ``fill_price * size`` from buying power
    and closing it credits the exit notional; shorts do the reverse. At most
    one position per ticker is open at any time.

    Orders wait in a single FIFO queue shared by all tickers. Each bar only
    checks the orders of its own ticker; the rest keep their place.

    Example:
        >>> portfolio = Portfolio(100000.0, sizing=SizingStrategy.fixed(10))
        >>> portfolio.submit_signal(Signal("AAPL", ts, SignalSide.BUY), price=150.0)
        >>> logs = portfolio.process_bar(bar)  # market order fills at bar.close
    """

    def __init__(
        self,
        buying_power: float,
        replacement_policy: ReplacementPolicy = ReplacementPolicy.QUEUE,
        sizing: Optional[SizingStrategy] = None,
        signal_ranker: Optional[SignalRanker] = None,
        order_lifetime: OrderLifetime = OrderLifetime.GTC,  # ExecutionConfig.order_lifetime when built by the engine
        max_position_ns: Optional[int] = None,
        market_hours: Optional[MarketHoursConfig] = None,
    ):
        """Initialize portfolio.

        Args:
            buying_power: Starting buying power
            replacement_policy: Policy for opening orders that cannot be afforded
            sizing: Sizing strategy for opening orders (100 shares when None)
            signal_ranker: Hook for REPLACE_SIGNAL; without it that policy queues
            order_lifetime: Lifetime for orders whose signal does not set one
            max_position_ns: Default holding-time limit for new positions
            market_hours: Session boundaries for end-of-day order expiry
        """
        self.starting_buying_power = buying_power
        self.buying_power = buying_power
        self.replacement_policy = replacement_policy
        self.sizing = sizing or SizingStrategy.fixed(100)
        self.signal_ranker = signal_ranker
        self.order_lifetime = order_lifetime
        self.max_position_ns = max_position_ns
        self.market_hours = market_hours or MarketHoursConfig()

        self.positions: Dict[str, Position] = {}  # ticker -> open position
        self.closed_positions: List[Position] = []
        self.pending_orders: Deque[Order] = deque()
        self.realized_pnl = 0.0
        self.last_prices: Dict[str, float] = {}

    # ------------------------------------------------------------------ queries

    def open_position(self, ticker: str) -> Optional[Position]:
        return self.positions.get(ticker)

    def has_position(self, ticker: str) -> bool:
        return ticker in self.positions

    def has_pending_open(self, ticker: str) -> bool:
        return any(o.ticker == ticker and o.action == OrderAction.OPEN for o in self.pending_orders)

    def has_pending_close(self, ticker: str) -> bool:
        return any(o.ticker == ticker and o.action == OrderAction.CLOSE for o in self.pending_orders)

    def mark_price(self, ticker: str, price: float) -> None:
        """Record the latest price seen for a ticker."""
        self.last_prices[ticker] = price

    def _price_for(self, position: Position) -> float:
        return self.last_prices.get(position.ticker, position.entry_price)

    def unrealized_pnl(self) -> float:
        """Unrealized P&L of all open positions at their last seen prices."""
        return sum(p.unrealized_pnl(self._price_for(p)) for p in self.positions.values())

    def equity(self) -> float:
        """Buying power plus long market value minus short market value."""
        equity = self.buying_power
        for position in self.positions.values():
            value = position.market_value(self._price_for(position))
            equity += value if position.is_long else -value
        return equity

    def log_snapshot(self, timestamp: int) -> None:
        log_portfolio_snapshot(
            logger,
            timestamp=timestamp,
            buying_power=self.buying_power,
            equity=self.equity(),
            open_positions=len(self.positions),
            pending_orders=len(self.pending_orders),
            realized_pnl=self.realized_pnl,
            unrealized_pnl=self.unrealized_pnl(),
        )

    # ------------------------------------------------------------------ signals

    def submit_signal(self, signal: Signal, price: float, strategy_name: str = "") -> Optional[Order]:
        """Turn a signal into at most one pending order.

        With no open position the signal opens one (BUY -> long, SELL ->
        short). With an open position, an opposite signal closes it using the
        position's size; a same-direction signal is ignored.

        Args:
            signal: Signal to act on
            price: Current price of the signal's ticker, for sizing and cost
            strategy_name: Strategy that produced the signal

        Returns:
            The order added to the queue, or None
        """
        position = self.positions.get(signal.ticker)
        if position is not None:
            if (position.is_long and signal.side == SignalSide.BUY) or (
                not position.is_long and signal.side == SignalSide.SELL
            ):
                logger.debug(f"Ignoring {signal.side.value} for {signal.ticker}: position already {position.side.value}")
                return None
            if self.has_pending_close(signal.ticker):
                logger.debug(f"Ignoring {signal.side.value} for {signal.ticker}: close already pending")
                return None
            try:
                order = self._close_order(position, signal.timestamp, signal, strategy_name)
            except InvalidOrderError as e:
                return self._reject_invalid(signal, e)
            self.pending_orders.append(order)
            return order

        if self.has_pending_open(signal.ticker):
            logger.debug(f"Ignoring {signal.side.value} for {signal.ticker}: open already pending")
            return None

        size = self.sizing.calculate(price, self.buying_power)
        if size <= 0:
            log_trade_event(
                logger, TradeEventType.REJECTED, signal.ticker, signal.timestamp,
                reason=f"sizing returned {size} shares at {price}",
            )
            return None

        try:
            order = self._open_order(signal, size, strategy_name)
        except InvalidOrderError as e:
            return self._reject_invalid(signal, e)
        cost = order.estimated_cost(price)
        if cost > self.buying_power:
            return self._apply_replacement(order, signal, cost)

        self.pending_orders.append(order)
        return order

    def _reject_invalid(self, signal: Signal, error: InvalidOrderError) -> None:
        log_trade_event(
            logger, TradeEventType.REJECTED, signal.ticker, signal.timestamp,
            reason=f"invalid order: {error}", condition=signal.condition_name,
        )
        return None

    def _open_order(self, signal: Signal, size: int, strategy_name: str) -> Order:
        return Order(
            ticker=signal.ticker,
            order_type=signal.order_type or OrderType.market(signal.side),
            action=OrderAction.OPEN,
            size=size,
            timestamp=signal.timestamp,
            lifetime=signal.lifetime or self.order_lifetime,
            atr=signal.atr,
            strategy_name=strategy_name,
            condition_name=signal.condition_name,
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            max_time_ns=self.max_position_ns,
            market_hours=self.market_hours,
        )

    def _close_order(
        self, position: Position, timestamp: int, signal: Optional[Signal] = None, strategy_name: str = "",
        condition_name: Optional[str] = None,
    ) -> Order:
        side = SignalSide.SELL if position.is_long else SignalSide.BUY
        order_type = OrderType.market(side)
        lifetime = OrderLifetime.GTC
        atr = None
        if signal is not None:
            order_type = signal.order_type or order_type
            lifetime = signal.lifetime or self.order_lifetime
            atr = signal.atr
            condition_name = condition_name or signal.condition_name
        return Order(
            ticker=position.ticker,
            order_type=order_type,
            action=OrderAction.CLOSE,
            size=position.size,
            timestamp=timestamp,
            lifetime=lifetime,
            atr=atr,
            strategy_name=strategy_name,
            condition_name=condition_name or "",
            market_hours=self.market_hours,
        )

    def _apply_replacement(self, order: Order, signal: Signal, cost: float) -> Optional[Order]:
        policy = self.replacement_policy
        logger.debug(
            f"Insufficient buying power for {order.ticker}: cost {cost:,.2f} > {self.buying_power:,.2f}, "
            f"policy {policy.value}"
        )

        if policy == ReplacementPolicy.CANCEL:
            log_trade_event(
                logger, TradeEventType.REJECTED, order.ticker, order.timestamp,
                reason=f"insufficient buying power ({cost:,.2f} > {self.buying_power:,.2f})",
            )
            return None

        if policy == ReplacementPolicy.QUEUE or (
            policy == ReplacementPolicy.REPLACE_SIGNAL and self.signal_ranker is None
        ):
            self.pending_orders.append(order)
            return order

        candidates = [p for p in self.positions.values() if not self.has_pending_close(p.ticker)]
        victim = select_replacement(policy, signal, candidates, self.signal_ranker)
        if victim is None:
            if policy == ReplacementPolicy.REPLACE_SIGNAL:
                log_trade_event(
                    logger, TradeEventType.REJECTED, order.ticker, order.timestamp,
                    reason="signal ranked below every open position",
                )
                return None
            # Nothing left to close; retry as a queued order
            self.pending_orders.append(order)
            return order

        close = self._close_order(
            victim, order.timestamp, strategy_name=order.strategy_name,
            condition_name=f"{policy.value}:{order.ticker}",
        )
        self.pending_orders.appendleft(close)
        self.pending_orders.append(order)
        logger.info(f"Replacing {victim.ticker} position {victim.id} to make room for {order.ticker}")
        return order

    # ------------------------------------------------------------------ exits

    def check_exit_guards(self, bar: Bar) -> Optional[Order]:
        """Queue a close for the bar's ticker if a stop, target or time limit is hit.

        Args:
            bar: Current bar

        Returns:
            The close order queued, or None
        """
        position = self.positions.get(bar.ticker)
        if position is None or self.has_pending_close(bar.ticker):
            return None

        guard = position.exit_guard_hit(bar.close, bar.timestamp)
        if guard is None:
            return None

        log_trade_event(
            logger, TradeEventType.STOP_HIT, bar.ticker, bar.timestamp,
            guard=guard.value, price=bar.close, position_id=position.id,
        )
        order = self._close_order(position, bar.timestamp, condition_name=guard.value)
        self.pending_orders.append(order)
        return order

    # ------------------------------------------------------------------ fills

    def process_bar(self, bar: Bar, indicator_values: Optional[Dict[str, float]] = None) -> List[TradeLog]:
        """Check the bar's ticker's pending orders and execute fills.

        Args:
            bar: Current bar
            indicator_values: Ready indicator values for the ticker, copied into trade logs

        Returns:
            One TradeLog per executed trade, in queue order
        """
        self.mark_price(bar.ticker, bar.close)

        logs: List[TradeLog] = []
        remaining: Deque[Order] = deque()
        while self.pending_orders:
            order = self.pending_orders.popleft()
            if order.ticker != bar.ticker:
                remaining.append(order)
                continue

            status = order.check(bar)
            if status == OrderStatus.PENDING:
                remaining.append(order)
            elif status == OrderStatus.EXPIRED:
                log_trade_event(logger, TradeEventType.EXPIRED, order.ticker, bar.timestamp, order_id=order.order_id)
            else:
                log = self._execute(order, bar, indicator_values)
                if log is not None:
                    logs.append(log)

        self.pending_orders = remaining
        return logs

    def _execute(self, order: Order, bar: Bar, indicator_values: Optional[Dict[str, float]]) -> Optional[TradeLog]:
        if order.action == OrderAction.OPEN:
            return self._open_position(order, bar, indicator_values)
        return self._close_position(order, bar, indicator_values)

    def _open_position(self, order: Order, bar: Bar, indicator_values: Optional[Dict[str, float]]) -> Optional[TradeLog]:
        if order.ticker in self.positions:
            log_trade_event(
                logger, TradeEventType.REJECTED, order.ticker, bar.timestamp,
                reason="position already open", order_id=order.order_id,
            )
            return None

        cost = order.fill_price * order.fill_size
        if cost > self.buying_power:
            # An earlier fill in this scan used the capital this order was admitted with
            log_trade_event(
                logger, TradeEventType.REJECTED, order.ticker, bar.timestamp,
                reason=f"buying power consumed before fill ({cost:,.2f} > {self.buying_power:,.2f})",
                order_id=order.order_id,
            )
            return None

        side = PositionSide.LONG if order.is_buy else PositionSide.SHORT
        if side == PositionSide.LONG:
            self.buying_power -= cost
        else:
            self.buying_power += cost

        position = Position(
            ticker=order.ticker,
            side=side,
            size=order.fill_size,
            entry_price=order.fill_price,
            entry_timestamp=bar.timestamp,
            stop_loss=order.stop_loss,
            take_profit=order.take_profit,
            max_time_ns=order.max_time_ns,
        )
        self.positions[order.ticker] = position

        log_trade_event(
            logger, TradeEventType.ENTRY, order.ticker, bar.timestamp,
            side=side.value, entry_price=position.entry_price, size=position.size,
            condition=order.condition_name, position_id=position.id,
        )
        return TradeLog.capture(position, TradeAction.ENTRY, order.strategy_name, order.condition_name, indicator_values)

    def _close_position(self, order: Order, bar: Bar, indicator_values: Optional[Dict[str, float]]) -> Optional[TradeLog]:
        position = self.positions.get(order.ticker)
        if position is None:
            log_trade_event(
                logger, TradeEventType.REJECTED, order.ticker, bar.timestamp,
                reason="no open position to close", order_id=order.order_id,
            )
            return None

        proceeds = order.fill_price * position.size
        if position.is_long:
            self.buying_power += proceeds
        else:
            self.buying_power -= proceeds

        pnl = position.close(order.fill_price, bar.timestamp)
        del self.positions[order.ticker]
        self.closed_positions.append(position)
        self.realized_pnl += pnl

        log_trade_event(
            logger, TradeEventType.EXIT, order.ticker, bar.timestamp,
            exit_price=position.exit_price, realized_pnl=pnl,
            condition=order.condition_name, position_id=position.id,
        )
        return TradeLog.capture(position, TradeAction.EXIT, order.strategy_name, order.condition_name, indicator_values)
