import pytest

from src.common.services.accounting import position_aggregator
from src.common.services.accounting.position_aggregator import AVERAGE, FIFO
from src.common.utils.exceptions import DataIntegrityError, ValidationError


def test_buys_only_quantity_and_weighted_average(make_trade):
    trades = [
        make_trade("BUY", 10, 150.25, day=0),
        make_trade("BUY", 5, 155.5, day=1),
        make_trade("BUY", 3, 149.0, day=2),
    ]

    positions = position_aggregator.active_positions(trades)

    assert len(positions) == 1
    position = positions[0]
    assert position.quantity == 18
    expected_cost = 10 * 150.25 + 5 * 155.5 + 3 * 149.0
    assert position.total_cost == pytest.approx(expected_cost)
    assert position.average_price == pytest.approx(expected_cost / 18)


def test_fifo_partial_sell_leaves_newest_lot_cost(make_trade):
    # BUY 10@10, BUY 10@20, SELL 15@30 -> 5주 @ 20
    trades = [
        make_trade("BUY", 10, 10.0, day=0),
        make_trade("BUY", 10, 20.0, day=1),
        make_trade("SELL", 15, 30.0, day=2),
    ]

    position = position_aggregator.active_positions(trades, FIFO)[0]

    assert position.quantity == 5
    assert position.average_price == pytest.approx(20.0)
    assert position.total_cost == pytest.approx(100.0)


def test_average_method_keeps_running_average(make_trade):
    trades = [
        make_trade("BUY", 10, 10.0, day=0),
        make_trade("BUY", 10, 20.0, day=1),
        make_trade("SELL", 15, 30.0, day=2),
    ]

    position = position_aggregator.active_positions(trades, AVERAGE)[0]

    assert position.quantity == 5
    # 매도 직전 평균 15 * 15주 차감
    assert position.average_price == pytest.approx(15.0)
    assert position.total_cost == pytest.approx(75.0)


def test_sell_price_does_not_change_remaining_cost(make_trade):
    cheap_sell = [make_trade("BUY", 10, 50.0, day=0), make_trade("SELL", 4, 1.0, day=1)]
    rich_sell = [make_trade("BUY", 10, 50.0, day=0), make_trade("SELL", 4, 500.0, day=1)]

    for method in (FIFO, AVERAGE):
        cheap = position_aggregator.active_positions(cheap_sell, method)[0]
        rich = position_aggregator.active_positions(rich_sell, method)[0]
        assert cheap.total_cost == pytest.approx(300.0)
        assert rich.total_cost == pytest.approx(300.0)


def test_full_sell_drops_position_and_resets_cost(make_trade):
    trades = [
        make_trade("BUY", 10, 10.0, day=0),
        make_trade("SELL", 10, 12.0, day=1),
    ]

    positions = position_aggregator.aggregate_positions(trades)

    assert positions["AAPL"].quantity == 0
    assert positions["AAPL"].total_cost == 0.0
    assert positions["AAPL"].average_price == 0.0
    assert position_aggregator.active_positions(trades) == []


def test_order_of_input_does_not_matter(make_trade):
    trades = [
        make_trade("BUY", 10, 10.0, day=0),
        make_trade("SELL", 5, 12.0, day=1),
        make_trade("BUY", 10, 20.0, day=2),
    ]

    forward = position_aggregator.active_positions(trades)[0]
    backward = position_aggregator.active_positions(list(reversed(trades)))[0]

    assert forward.quantity == backward.quantity == 15
    assert forward.total_cost == pytest.approx(backward.total_cost)


def test_negative_holdings_raise_integrity_error(make_trade):
    trades = [
        make_trade("BUY", 5, 10.0, day=0),
        make_trade("SELL", 8, 12.0, day=1),
    ]

    with pytest.raises(DataIntegrityError):
        position_aggregator.aggregate_positions(trades)


def test_positions_sorted_by_symbol(make_trade):
    trades = [
        make_trade("BUY", 1, 10.0, symbol="MSFT"),
        make_trade("BUY", 1, 10.0, symbol="AAPL"),
        make_trade("BUY", 1, 10.0, symbol="GOOG"),
    ]

    symbols = [p.symbol for p in position_aggregator.active_positions(trades)]

    assert symbols == ["AAPL", "GOOG", "MSFT"]


def test_unknown_cost_basis_method(make_trade):
    with pytest.raises(ValidationError):
        position_aggregator.aggregate_positions([make_trade("BUY", 1, 10.0)], "lifo")
