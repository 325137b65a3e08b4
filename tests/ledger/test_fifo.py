"""Tests for lotbook.ledger.fifo."""

from datetime import date
from decimal import Decimal

import pytest

from lotbook.core.exceptions import CurrencyMismatchError, DataProcessingError, InvalidTradeOrdering
from lotbook.ledger.fifo import compute_fifo
from lotbook.ledger.models import Side


@pytest.mark.smoke
class TestScenario:
    """Buy 100 @ 10, buy 50 @ 20, sell 120 @ 30."""

    def test_two_events(self, scenario_trades):
        result = compute_fifo(scenario_trades)
        assert result.ok
        assert len(result.realized) == 2

        first, second = result.realized
        assert (first.matched_lot_origin_id, first.quantity_closed) == ("b1", Decimal("100"))
        assert first.cost_basis == Decimal("1000")
        assert first.proceeds == Decimal("3000")
        assert first.gain == Decimal("2000")

        assert (second.matched_lot_origin_id, second.quantity_closed) == ("b2", Decimal("20"))
        assert second.cost_basis == Decimal("400")
        assert second.proceeds == Decimal("600")
        assert second.gain == Decimal("200")

    def test_total_gain(self, scenario_trades):
        assert compute_fifo(scenario_trades).total_gain == Decimal("2200")

    def test_remaining_lot(self, scenario_trades):
        result = compute_fifo(scenario_trades)
        assert len(result.open_lots) == 1
        lot = result.open_lots[0]
        assert lot.origin_trade_id == "b2"
        assert lot.remaining_quantity == Decimal("30")
        assert lot.unit_cost == Decimal("20")
        assert lot.open_date == date(2023, 2, 1)

    def test_holding_periods(self, scenario_trades):
        first, second = compute_fifo(scenario_trades).realized
        assert first.holding_period_days == 59
        assert second.holding_period_days == 28
        assert first.close_date == second.close_date == date(2023, 3, 1)


class TestOversell:
    def test_sell_150_holding_100(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 100, 10, trade_id="b1"),
            make_trade(Side.SELL, date(2024, 2, 1), 150, 12, trade_id="s1"),
        ]
        result = compute_fifo(trades)
        assert not result.ok
        assert result.error.trade_id == "s1"
        assert result.error.unmatched_quantity == Decimal("50")
        # Only the matched 100 units produce an event
        assert len(result.realized) == 1
        assert result.realized[0].quantity_closed == Decimal("100")
        assert result.open_lots == ()

    def test_sell_with_empty_inventory(self, make_trade):
        result = compute_fifo([make_trade(Side.SELL, date(2024, 1, 1), 5, 10, trade_id="s1")])
        assert result.realized == ()
        assert result.error.unmatched_quantity == Decimal("5")

    def test_stops_at_first_oversell(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 10, 10),
            make_trade(Side.SELL, date(2024, 2, 1), 20, 10, trade_id="s1"),
            make_trade(Side.BUY, date(2024, 3, 1), 50, 10),
        ]
        result = compute_fifo(trades)
        assert result.error.trade_id == "s1"
        assert result.open_lots == ()


class TestCommissions:
    def test_buy_commission_in_unit_cost(self, make_trade):
        trades = [make_trade(Side.BUY, date(2024, 3, 1), 100, "10.00", commission=5)]
        lot = compute_fifo(trades).open_lots[0]
        assert lot.unit_cost == Decimal("10.05")
        assert lot.buy_commission == Decimal("5")

    def test_sell_commission_prorated_across_lots(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 30, 10, trade_id="b1"),
            make_trade(Side.BUY, date(2024, 1, 2), 70, 10, trade_id="b2"),
            make_trade(Side.SELL, date(2024, 2, 1), 100, 12, commission=10, trade_id="s1"),
        ]
        first, second = compute_fifo(trades).realized
        assert first.proceeds == Decimal("357.00")  # 30*12 - 3
        assert second.proceeds == Decimal("833.00")  # 70*12 - 7
        assert first.gain + second.gain == Decimal("190.00")

    def test_matches_partial_lot_then_keeps_remainder(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 3, 1), 100, "10.00", commission=5, trade_id="tx1"),
            make_trade(Side.BUY, date(2024, 7, 1), 50, "12.00", commission=5, trade_id="tx2"),
            make_trade(Side.SELL, date(2024, 9, 15), 50, "15.00", commission=5, trade_id="tx3"),
        ]
        result = compute_fifo(trades)
        (event,) = result.realized
        assert event.cost_basis == Decimal("502.50")
        assert event.proceeds == Decimal("745.00")
        assert event.gain == Decimal("242.50")
        assert [lot.remaining_quantity for lot in result.open_lots] == [Decimal("50"), Decimal("50")]
        assert result.open_lots[0].buy_commission == Decimal("2.5")

    def test_rounding_only_on_emission(self, make_trade):
        # Unit cost 10/3 keeps full precision; three sells of 1 unit each
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 3, 3, commission=1),
            make_trade(Side.SELL, date(2024, 2, 1), 1, 4),
            make_trade(Side.SELL, date(2024, 2, 2), 1, 4),
            make_trade(Side.SELL, date(2024, 2, 3), 1, 4),
        ]
        result = compute_fifo(trades)
        assert [e.cost_basis for e in result.realized] == [Decimal("3.33")] * 3
        assert result.open_lots == ()


class TestOrderingAndInputs:
    def test_out_of_order_raises(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 2, 1), 10, 10, trade_id="b1"),
            make_trade(Side.BUY, date(2024, 1, 1), 10, 10, trade_id="b2"),
        ]
        with pytest.raises(InvalidTradeOrdering) as exc_info:
            compute_fifo(trades)
        assert exc_info.value.trade_id == "b2"

    def test_same_day_keeps_caller_order(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 10, 5, trade_id="first"),
            make_trade(Side.BUY, date(2024, 1, 1), 10, 7, trade_id="second"),
            make_trade(Side.SELL, date(2024, 1, 1), 10, 8, trade_id="s1"),
        ]
        (event,) = compute_fifo(trades).realized
        assert event.matched_lot_origin_id == "first"

    def test_mixed_securities_raise(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 1, 1, security_id="A"),
            make_trade(Side.BUY, date(2024, 1, 2), 1, 1, security_id="B"),
        ]
        with pytest.raises(DataProcessingError, match="one security"):
            compute_fifo(trades)

    def test_mixed_currencies_raise(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 1, 1, currency="USD"),
            make_trade(Side.BUY, date(2024, 1, 2), 1, 1, currency="ARS"),
        ]
        with pytest.raises(CurrencyMismatchError):
            compute_fifo(trades)

    def test_empty(self):
        result = compute_fifo([])
        assert result.realized == ()
        assert result.open_lots == ()
        assert result.ok

    def test_money_places(self, make_trade):
        trades = [
            make_trade(Side.BUY, date(2024, 1, 1), 3, 1, commission=1),
            make_trade(Side.SELL, date(2024, 2, 1), 1, 2),
        ]
        (event,) = compute_fifo(trades, money_places=4).realized
        assert event.cost_basis == Decimal("1.3333")


class TestProperties:
    @pytest.fixture
    def long_history(self, make_trade):
        return [
            make_trade(Side.BUY, date(2024, 1, 2), 13, "101.37", commission="1.10"),
            make_trade(Side.BUY, date(2024, 1, 9), 7, "99.80", commission="0.75"),
            make_trade(Side.SELL, date(2024, 2, 1), 5, "104.02", commission="0.60"),
            make_trade(Side.BUY, date(2024, 2, 15), "2.5", "97.11", commission="0.31"),
            make_trade(Side.SELL, date(2024, 3, 3), 11, "95.40", commission="1.02"),
            make_trade(Side.SELL, date(2024, 4, 7), "4.25", "103.99", commission="0.44"),
        ]

    def test_conservation(self, long_history):
        result = compute_fifo(long_history)
        bought = sum(t.quantity for t in long_history if t.side is Side.BUY)
        sold = sum(t.quantity for t in long_history if t.side is Side.SELL)
        assert result.ok
        assert result.open_quantity == bought - sold
        assert all(lot.remaining_quantity > 0 for lot in result.open_lots)

    def test_every_sold_unit_accounted_once(self, long_history):
        result = compute_fifo(long_history)
        for sell in (t for t in long_history if t.side is Side.SELL):
            closed = sum(e.quantity_closed for e in result.realized if e.sell_trade_id == sell.trade_id)
            assert closed == sell.quantity

    def test_gain_additivity(self, long_history):
        result = compute_fifo(long_history)
        proceeds = sum(e.proceeds for e in result.realized)
        cost = sum(e.cost_basis for e in result.realized)
        assert result.total_gain == proceeds - cost

    def test_idempotent(self, long_history):
        assert compute_fifo(long_history) == compute_fifo(long_history)

    def test_open_lots_keep_open_date(self, long_history):
        result = compute_fifo(long_history)
        origin_dates = {t.trade_id: t.date for t in long_history}
        for lot in result.open_lots:
            assert lot.open_date == origin_dates[lot.origin_trade_id]


class TestSummaries:
    def test_one_row_per_sell(self, scenario_trades):
        (summary,) = compute_fifo(scenario_trades).summaries()
        assert summary.sell_trade_id == "s1"
        assert summary.quantity == Decimal("120")
        assert summary.cost_basis == Decimal("1400")
        assert summary.proceeds == Decimal("3600")
        assert summary.gain == Decimal("2200")
        assert summary.lots_matched == 2
        assert summary.average_unit_cost.quantize(Decimal("0.0001")) == Decimal("11.6667")
