"""Unit tests for order types, validation and the fill state machine."""

import pandas as pd
import pytest

from strategy_tester.exceptions import (
    AtrRequiredError,
    InvalidOrderError,
    OrderAlreadyCompletedError,
    OrderAlreadyFilledError,
    OrderError,
)
from strategy_tester.models.orders import (
    OrderAction,
    OrderDistance,
    OrderKind,
    OrderLifetime,
    OrderStatus,
    OrderType,
)
from strategy_tester.models.signals import SignalSide
from tests.utils.test_helpers import BASE_TS, create_sample_order, make_bar


def ts(text: str) -> int:
    return pd.Timestamp(text).value


class TestOrderDistance:
    """Tests for trigger price distances."""

    def test_percent_and_points(self):
        """Test relative distances move away from the reference by side."""
        assert OrderDistance.percent(2.0).price(100.0, is_buy=True) == pytest.approx(102.0)
        assert OrderDistance.percent(2.0).price(100.0, is_buy=False) == pytest.approx(98.0)
        assert OrderDistance.points(1.5).price(100.0, is_buy=False) == 98.5

    def test_fixed_ignores_reference(self):
        """Test a fixed distance is an absolute price."""
        assert OrderDistance.fixed(95.0).price(100.0, is_buy=True) == 95.0

    def test_atr_distance(self):
        """Test ATR distances scale the ATR value."""
        assert OrderDistance.atr(1.5).price(100.0, is_buy=True, atr=2.0) == 103.0

    def test_atr_distance_requires_atr(self):
        """Test pricing an ATR distance without ATR raises."""
        with pytest.raises(AtrRequiredError):
            OrderDistance.atr(1.5).price(100.0, is_buy=True)

    def test_invalid_distances(self):
        """Test negative distances and non-positive fixed prices are rejected."""
        with pytest.raises(InvalidOrderError):
            OrderDistance.percent(-1.0)
        with pytest.raises(InvalidOrderError):
            OrderDistance.fixed(0.0)


class TestOrderType:
    """Tests for order type construction."""

    def test_market_constructors(self):
        """Test market order sides."""
        assert OrderType.market_buy().is_buy
        assert not OrderType.market_sell().is_buy
        assert OrderType.market(SignalSide.SELL) == OrderType.market_sell()

    def test_trigger_required(self):
        """Test non-market orders need a trigger distance."""
        with pytest.raises(InvalidOrderError, match="trigger"):
            OrderType(OrderKind.LIMIT, SignalSide.BUY)
        with pytest.raises(InvalidOrderError, match="limit distance"):
            OrderType(OrderKind.STOP_LIMIT, SignalSide.BUY, trigger=OrderDistance.fixed(100.0))

    def test_with_side(self):
        """Test flipping an order type's side keeps its distances."""
        order_type = OrderType.limit_buy(OrderDistance.points(1.0)).with_side(SignalSide.SELL)
        assert order_type == OrderType.limit_sell(OrderDistance.points(1.0))

    def test_uses_atr(self):
        """Test ATR detection on either distance."""
        assert OrderType.stop_buy(OrderDistance.atr(2.0)).uses_atr()
        assert OrderType.stop_limit_sell(OrderDistance.points(1.0), OrderDistance.atr(1.0)).uses_atr()
        assert not OrderType.market_buy().uses_atr()


class TestOrderValidation:
    """Tests for order construction checks."""

    def test_size_must_be_positive(self):
        """Test zero-size orders are rejected."""
        with pytest.raises(InvalidOrderError, match="size"):
            create_sample_order(size=0)

    def test_atr_order_without_atr(self):
        """Test ATR orders need an ATR value at construction."""
        with pytest.raises(AtrRequiredError):
            create_sample_order(order_type=OrderType.stop_buy(OrderDistance.atr(2.0)))
        order = create_sample_order(order_type=OrderType.stop_buy(OrderDistance.atr(2.0)), atr=1.5)
        assert order.atr == 1.5

    def test_stop_limit_buy_stop_above_limit(self):
        """Test a buy stop-limit needs stop <= limit."""
        with pytest.raises(InvalidOrderError, match="stop-limit buy"):
            create_sample_order(
                order_type=OrderType.stop_limit_buy(OrderDistance.fixed(105.0), OrderDistance.fixed(100.0))
            )

    def test_stop_limit_sell_stop_below_limit(self):
        """Test a sell stop-limit needs stop >= limit."""
        with pytest.raises(InvalidOrderError, match="stop-limit sell"):
            create_sample_order(
                order_type=OrderType.stop_limit_sell(OrderDistance.points(2.0), OrderDistance.points(1.0))
            )
        order = create_sample_order(
            order_type=OrderType.stop_limit_sell(OrderDistance.points(1.0), OrderDistance.points(2.0))
        )
        assert order.status == OrderStatus.PENDING

    def test_atr_required_is_invalid_order(self):
        """Test the exception hierarchy."""
        assert issubclass(AtrRequiredError, InvalidOrderError)
        assert issubclass(OrderAlreadyFilledError, OrderAlreadyCompletedError)


class TestOrderFills:
    """Tests for Order.check against bars."""

    def test_market_fills_at_close(self):
        """Test a market order fills on the next checked bar at its close."""
        order = create_sample_order(size=10)
        status = order.check(make_bar(BASE_TS, close=101.0, open=100.0, high=102.0, low=99.0))

        assert status == OrderStatus.FILLED
        assert order.fill_price == 101.0
        assert order.fill_size == 10
        assert order.completed
        assert order.is_filled

    def test_limit_buy(self):
        """Test a limit buy waits until the low reaches the limit and fills at the low."""
        order = create_sample_order(order_type=OrderType.limit_buy(OrderDistance.fixed(95.0)))
        assert order.check(make_bar(BASE_TS, close=100.0, high=101.0, low=96.0)) == OrderStatus.PENDING
        assert order.fill_price is None

        assert order.check(make_bar(BASE_TS + 1, close=97.0, open=99.0, high=99.0, low=94.0)) == OrderStatus.FILLED
        assert order.fill_price == 94.0

    def test_limit_sell(self):
        """Test a limit sell fills at the high once it reaches the limit."""
        order = create_sample_order(order_type=OrderType.limit_sell(OrderDistance.fixed(105.0)))
        order.check(make_bar(BASE_TS, close=104.0, open=103.0, high=106.0, low=102.0))
        assert order.fill_price == 106.0

    def test_stop_buy_and_sell(self):
        """Test stop orders fill at the extreme that crossed the stop."""
        buy = create_sample_order(order_type=OrderType.stop_buy(OrderDistance.fixed(105.0)))
        buy.check(make_bar(BASE_TS, close=104.0, open=103.0, high=106.0, low=102.0))
        assert buy.fill_price == 106.0

        sell = create_sample_order(order_type=OrderType.stop_sell(OrderDistance.fixed(95.0)))
        assert sell.check(make_bar(BASE_TS, close=96.0, high=97.0, low=95.5)) == OrderStatus.PENDING
        sell.check(make_bar(BASE_TS + 1, close=96.0, open=96.0, high=97.0, low=94.0))
        assert sell.fill_price == 94.0

    def test_stop_limit_buy(self):
        """Test a stop-limit buy fills at its limit once the stop trades."""
        order = create_sample_order(
            order_type=OrderType.stop_limit_buy(OrderDistance.fixed(100.0), OrderDistance.fixed(102.0))
        )
        assert order.check(make_bar(BASE_TS, close=98.0, high=99.0, low=97.0)) == OrderStatus.PENDING
        order.check(make_bar(BASE_TS + 1, close=101.0, high=103.0, low=99.0))
        assert order.fill_price == 102.0

    def test_stop_limit_sell(self):
        """Test a stop-limit sell fills at min(high, limit) once the stop trades."""
        order = create_sample_order(
            order_type=OrderType.stop_limit_sell(OrderDistance.fixed(100.0), OrderDistance.fixed(98.0))
        )
        assert order.check(make_bar(BASE_TS, close=102.0, high=103.0, low=101.0)) == OrderStatus.PENDING

        assert order.check(make_bar(BASE_TS + 1, close=99.0, high=100.5, low=97.0)) == OrderStatus.FILLED
        assert order.fill_price == 98.0

    def test_stop_limit_sell_gap_below_limit(self):
        """Test a stop-limit sell does not fill when the bar trades entirely below the limit."""
        order = create_sample_order(
            order_type=OrderType.stop_limit_sell(OrderDistance.fixed(100.0), OrderDistance.fixed(98.0))
        )
        assert order.check(make_bar(BASE_TS, close=96.0, high=97.5, low=95.0)) == OrderStatus.PENDING
        assert order.fill_price is None
        assert not order.completed

        order.check(make_bar(BASE_TS + 1, close=99.0, high=99.5, low=96.0))
        assert order.fill_price == 98.0

    def test_pending_across_several_bars(self):
        """Test limit and stop orders stay pending bar after bar until triggered."""
        limit = create_sample_order(order_type=OrderType.limit_buy(OrderDistance.fixed(95.0)))
        stop = create_sample_order(order_type=OrderType.stop_buy(OrderDistance.fixed(105.0)))
        for i, (high, low) in enumerate([(101.0, 96.0), (102.0, 97.0), (104.0, 95.5)]):
            bar = make_bar(BASE_TS + i, close=100.0, high=high, low=low)
            assert limit.check(bar) == OrderStatus.PENDING
            assert stop.check(bar) == OrderStatus.PENDING
        assert limit.status == OrderStatus.PENDING
        assert stop.fill_size == 0

        assert limit.check(make_bar(BASE_TS + 3, close=96.0, high=97.0, low=94.5)) == OrderStatus.FILLED
        assert limit.fill_price == 94.5
        assert stop.check(make_bar(BASE_TS + 3, close=105.0, high=106.0, low=101.0)) == OrderStatus.FILLED
        assert stop.fill_price == 106.0
        assert stop.fill_size == stop.size

    def test_reference_price_overrides_close(self):
        """Test distances resolve against a fixed reference price when set."""
        order = create_sample_order(
            order_type=OrderType.limit_buy(OrderDistance.points(2.0)), reference_price=100.0
        )
        assert order.check(make_bar(BASE_TS, close=110.0, high=111.0, low=103.0)) == OrderStatus.PENDING
        order.check(make_bar(BASE_TS + 1, close=104.0, high=105.0, low=101.5))
        assert order.fill_price == 101.5

    def test_check_after_fill_raises(self):
        """Test a filled order cannot be checked again."""
        order = create_sample_order()
        order.check(make_bar(BASE_TS))
        with pytest.raises(OrderAlreadyFilledError):
            order.check(make_bar(BASE_TS + 1))

    def test_wrong_ticker_raises(self):
        """Test an order is only checked against its own ticker."""
        order = create_sample_order(ticker="AAPL")
        with pytest.raises(OrderError, match="MSFT"):
            order.check(make_bar(BASE_TS, ticker="MSFT"))

    def test_estimated_cost(self):
        """Test cost estimate is price times size."""
        assert create_sample_order(size=10).estimated_cost(150.0) == 1500.0


class TestOrderLifetime:
    """Tests for end-of-day expiry."""

    def test_eod_expires_after_close(self):
        """Test an EOD order expires on the first bar after the market close."""
        order = create_sample_order(
            order_type=OrderType.limit_buy(OrderDistance.fixed(90.0)), lifetime=OrderLifetime.EOD
        )
        assert order.expiry_ns() == ts("2024-01-02 16:00")

        assert order.check(make_bar(ts("2024-01-02 16:00"), close=100.0)) == OrderStatus.PENDING
        assert order.check(make_bar(ts("2024-01-02 16:01"), close=100.0)) == OrderStatus.EXPIRED
        assert order.is_expired
        assert order.completed
        assert order.fill_price is None

    def test_expired_order_cannot_be_checked(self):
        """Test an expired order raises on further checks."""
        order = create_sample_order(lifetime=OrderLifetime.EOD)
        order.check(make_bar(ts("2024-01-03 10:00")))
        assert order.is_expired
        with pytest.raises(OrderAlreadyCompletedError) as exc_info:
            order.check(make_bar(ts("2024-01-03 10:01")))
        assert not isinstance(exc_info.value, OrderAlreadyFilledError)

    def test_gtc_survives_overnight(self):
        """Test a GTC order stays pending across sessions."""
        order = create_sample_order(order_type=OrderType.limit_buy(OrderDistance.fixed(90.0)))
        assert order.expiry_ns() is None
        assert order.check(make_bar(ts("2024-01-05 10:00"), close=100.0)) == OrderStatus.PENDING

    def test_action_helpers(self):
        """Test open/close action helpers."""
        assert create_sample_order().is_open
        assert not create_sample_order(action=OrderAction.CLOSE).is_open
        assert create_sample_order(order_type=OrderType.market_sell()).side == SignalSide.SELL
