"""
Tests for the fill walker (might_fill pre-check and evaluate).

The walker is exercised directly with hand-written price sequences so every
expected fill price can be read off the sequence:

  - gap priority: a leg opening through the order fills at the opening price
  - crossing: a later touch fills at the order's own price
  - stop-limit: trigger first, then a limit scan from the trigger point
"""

import pytest

from src.data.bars import PriceBar
from src.execution.fill_walker import FillResult, evaluate, might_fill
from src.orders.types import Limit, Market, Side, Stop, StopLimit


BAR = PriceBar("AAPL", open=100.0, high=110.0, low=95.0, close=105.0)


# ============================================================================
# might_fill
# ============================================================================

def test_might_fill_market_always_true():
    """Market orders are always feasible."""
    assert might_fill(BAR, Side.BUY, Market())
    assert might_fill(BAR, Side.SELL, Market())


@pytest.mark.parametrize("side, order_type, expected", [
    (Side.BUY, Limit(95.0), True),     # low touches limit exactly
    (Side.BUY, Limit(90.0), False),    # low 95 never reaches 90
    (Side.SELL, Limit(110.0), True),   # high touches limit exactly
    (Side.SELL, Limit(111.0), False),
    (Side.BUY, Stop(110.0), True),
    (Side.BUY, Stop(115.0), False),
    (Side.SELL, Stop(95.0), True),
    (Side.SELL, Stop(90.0), False),
])
def test_might_fill_limit_and_stop_table(side, order_type, expected):
    """Limit and stop feasibility follows the bar's high/low."""
    assert might_fill(BAR, side, order_type) is expected


def test_might_fill_stop_limit_checks_stop_only():
    """
    Stop-limit feasibility only asks whether the stop is reachable.

    Buy StopLimit(102, 108): high 110 >= 102 -> feasible.
    Buy StopLimit(115, 120): high 110 < 115 -> infeasible.
    Sell StopLimit(97, 93): low 95 <= 97 -> feasible even though the limit
    could never be met, that is decided by the walk.
    """
    assert might_fill(BAR, Side.BUY, StopLimit(102.0, 108.0))
    assert not might_fill(BAR, Side.BUY, StopLimit(115.0, 120.0))
    assert might_fill(BAR, Side.SELL, StopLimit(97.0, 93.0))
    assert not might_fill(BAR, Side.SELL, StopLimit(90.0, 85.0))


def test_might_fill_false_means_no_fill_on_either_waypoint_order():
    """If the pre-check says no, no OHLC-consistent ordering fills."""
    orders = [
        (Side.BUY, Limit(90.0)),
        (Side.SELL, Limit(111.0)),
        (Side.BUY, Stop(115.0)),
        (Side.SELL, Stop(90.0)),
        (Side.BUY, StopLimit(115.0, 120.0)),
        (Side.SELL, StopLimit(90.0, 85.0)),
    ]
    paths = [[100.0, 110.0, 95.0, 105.0], [100.0, 95.0, 110.0, 105.0]]

    for side, order_type in orders:
        assert not might_fill(BAR, side, order_type)
        for path in paths:
            assert evaluate(path, side, order_type) is None


def test_might_fill_rejects_unknown_order_type():
    with pytest.raises(TypeError):
        might_fill(BAR, Side.BUY, "limit")


# ============================================================================
# evaluate: basic order types
# ============================================================================

def test_evaluate_empty_sequence_no_fill():
    assert evaluate([], Side.BUY, Market()) is None
    assert evaluate([], Side.SELL, Limit(100.0)) is None


def test_evaluate_market_fills_at_first_price():
    """Market orders take the first observable price."""
    assert evaluate([100.0, 110.0, 95.0, 105.0], Side.BUY, Market()) == FillResult(100.0, 0)


def test_evaluate_buy_limit_crossing_fills_at_limit():
    """
    Path 100 -> 110 -> 95 -> 105, Buy Limit 97.

    The drop from 110 to 95 passes through 97; the fill is at 97, not 95.
    """
    result = evaluate([100.0, 110.0, 95.0, 105.0], Side.BUY, Limit(97.0))

    assert result == FillResult(price=97.0, index=2)


def test_evaluate_sell_limit_crossing_fills_at_limit():
    result = evaluate([100.0, 110.0, 95.0, 105.0], Side.SELL, Limit(103.0))

    assert result == FillResult(price=103.0, index=1)


def test_evaluate_limit_gap_fills_at_open():
    """A buy limit below an opening gap-down fills at the (better) open."""
    result = evaluate([90.0, 95.0, 88.0, 92.0], Side.BUY, Limit(97.0))

    assert result == FillResult(price=90.0, index=0)


def test_evaluate_limit_exact_touch_counts_as_crossing():
    """Touching the limit exactly fills at the limit."""
    result = evaluate([100.0, 110.0, 95.0, 105.0], Side.BUY, Limit(95.0))

    assert result == FillResult(price=95.0, index=2)


def test_evaluate_limit_never_reached():
    assert evaluate([100.0, 110.0, 95.0, 105.0], Side.BUY, Limit(94.99)) is None


def test_evaluate_buy_stop_gap_up_fills_at_open():
    """
    Bar {O=120, H=130, L=118, C=125}, Buy Stop 110.

    The open is already above the stop, so the fill is the observed 120.
    """
    result = evaluate([120.0, 130.0, 118.0, 125.0], Side.BUY, Stop(110.0))

    assert result == FillResult(price=120.0, index=0)


def test_evaluate_sell_stop_gap_down_fills_at_open():
    result = evaluate([90.0, 95.0, 80.0, 85.0], Side.SELL, Stop(95.0))

    assert result == FillResult(price=90.0, index=0)


def test_evaluate_stop_crossing_fills_at_stop_not_overshoot():
    """
    Path overshoots far past the stop; the fill stays at the stop price.
    """
    result = evaluate([100.0, 150.0, 95.0, 105.0], Side.BUY, Stop(101.0))

    assert result == FillResult(price=101.0, index=1)


def test_evaluate_sell_stop_exact_low():
    result = evaluate([100.0, 110.0, 95.0, 105.0], Side.SELL, Stop(95.0))

    assert result == FillResult(price=95.0, index=2)


# ============================================================================
# evaluate: stop-limit
# ============================================================================

def test_evaluate_stop_limit_trigger_meets_limit_fills_at_stop():
    """
    Buy StopLimit(151, 152) over 150.5 -> 151.75 -> 150 -> 151.5.

    The stop is crossed at 151, which already satisfies the limit (<= 152),
    so the leg opens at 151 and fills there.
    """
    result = evaluate([150.5, 151.75, 150.0, 151.5], Side.BUY, StopLimit(151.0, 152.0))

    assert result == FillResult(price=151.0, index=1)


def test_evaluate_stop_limit_gap_trigger_fills_at_open():
    """Gap through both stop and limit fills at the observed open."""
    result = evaluate([120.0, 130.0, 118.0, 125.0], Side.BUY, StopLimit(110.0, 130.0))

    assert result == FillResult(price=120.0, index=0)


def test_evaluate_stop_limit_waits_for_limit_after_gap_trigger():
    """
    Sell StopLimit(stop=100, limit=98) over 95 -> 96.5 -> 98 -> 97.

    The leg gaps through the stop at 95 (below the limit), the walk keeps
    going and fills when price comes back up to exactly 98.
    """
    result = evaluate([95.0, 96.5, 98.0, 97.0], Side.SELL, StopLimit(100.0, 98.0))

    assert result == FillResult(price=98.0, index=2)


def test_evaluate_stop_limit_limit_crossing_fills_at_limit():
    """After a gap trigger the limit is crossed mid-leg and fills at the limit."""
    result = evaluate([90.0, 96.0, 99.5, 97.0], Side.SELL, StopLimit(100.0, 98.0))

    assert result == FillResult(price=98.0, index=2)


def test_evaluate_stop_limit_gap_trigger_limit_never_met():
    """
    Buy StopLimit(110, 117) over 120 -> 130 -> 118 -> 125.

    Triggered at the open, but no later price is <= 117.
    """
    assert evaluate([120.0, 130.0, 118.0, 125.0], Side.BUY, StopLimit(110.0, 117.0)) is None


def test_evaluate_stop_limit_stop_never_triggers():
    assert evaluate([149.5, 150.0, 148.5, 149.0], Side.SELL, StopLimit(148.0, 147.0)) is None


def test_evaluate_stop_limit_ignores_limit_touches_before_trigger():
    """
    A limit-satisfying price before the stop triggers does not count.

    Buy StopLimit(105, 106) over 100 -> 104 -> 107 -> 108. Prices before the
    trigger are below the limit, but the order is not live yet. The stop is
    crossed at 105 which satisfies the limit, so it fills at 105.
    """
    result = evaluate([100.0, 104.0, 107.0, 108.0], Side.BUY, StopLimit(105.0, 106.0))

    assert result == FillResult(price=105.0, index=2)


def test_evaluate_stop_limit_spans_segments():
    """
    Stop triggers in the first segment, limit fills in the last one.

    Flattened mini-bar endpoints: (97 -> 96) (96.5 -> 97.5) (97.8 -> 98.4).
    Sell StopLimit(100, 98): the first segment opens through the stop at 97,
    which is below the limit. Price only climbs back above 98 in the third
    segment, so the fill is at the limit, index 5.
    """
    result = evaluate([97.0, 96.0, 96.5, 97.5, 97.8, 98.4], Side.SELL, StopLimit(100.0, 98.0))

    assert result == FillResult(price=98.0, index=5)
