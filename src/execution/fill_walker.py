"""
Fill decisions for single orders against an ordered price sequence.

**Conceptual**: Given the prices a symbol traded at during a period (a
synthetic intraday path, or real mini-bar data), would a resting order have
filled, and at what price? Every order type reduces to one primitive, a
*threshold crossing scan with gap priority*:

  1. Look at the first price of the leg. If the order's condition already
     holds there, the market gapped through the order before anything else
     was observable: fill at that observed price (which may be better than
     the order's own price).
  2. Otherwise walk forward. The first price at which the condition becomes
     true is a crossing: the market touched the resting order, which fills
     at its *own* limit/stop price, however far the path overshoots.
     Touching the price exactly counts as a crossing.
  3. If the condition never holds, there is no fill.

Per order type:

  - Market: fills at the first price.
  - Limit: buy when price <= limit, sell when price >= limit.
  - Stop: buy when price >= stop, sell when price <= stop; fills at the stop
    price (or the gap price), it does not walk on for a better price.
  - StopLimit: find the stop trigger first. The leg then restarts at the
    trigger point, opening at the observed trigger price (gap price or stop
    price), and is scanned as a Limit order over the rest of the sequence,
    which may span several bars or mini-bars.

:func:`might_fill` is the cheap O(1) pre-check used to skip path synthesis
when a bar's range makes a fill impossible. It is necessary, not sufficient:
``False`` guarantees no fill on any path consistent with the bar, ``True``
only means a fill is possible.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from src.data.bars import PriceBar
from src.orders.types import Limit, Market, OrderType, Side, Stop, StopLimit


Condition = Callable[[float], bool]


@dataclass(frozen=True)
class FillResult:
    """
    Where and at what price an order fills.

    Attributes:
        price: Fill price.
        index: Position in the walked sequence where the fill happened.
    """
    price: float
    index: int


def might_fill(bar: PriceBar, side: Side, order_type: OrderType) -> bool:
    """
    Could this order possibly fill within the bar's range?

    | side | order_type             | feasible iff        |
    |------|------------------------|---------------------|
    | any  | Market                 | always              |
    | Buy  | Limit(p)               | low <= p            |
    | Sell | Limit(p)               | high >= p           |
    | Buy  | Stop(p)                | high >= p           |
    | Sell | Stop(p)                | low <= p            |
    | Buy  | StopLimit(stop, limit) | high >= stop        |
    | Sell | StopLimit(stop, limit) | low <= stop         |

    Stop-limit limit reachability is left to the walk, after the trigger.
    """
    if isinstance(order_type, Market):
        return True
    if isinstance(order_type, Limit):
        if side is Side.BUY:
            return bar.low <= order_type.price
        return bar.high >= order_type.price
    if isinstance(order_type, Stop):
        return _stop_reachable(bar, side, order_type.price)
    if isinstance(order_type, StopLimit):
        return _stop_reachable(bar, side, order_type.stop_price)
    raise TypeError(f"Unsupported order type: {order_type!r}")


def evaluate(
    prices: Sequence[float],
    side: Side,
    order_type: OrderType,
) -> Optional[FillResult]:
    """
    Walk ``prices`` once, left to right, and decide whether the order fills.

    Args:
        prices: Ordered prices of the leg (path prices or mini-bar endpoints).
        side: BUY or SELL.
        order_type: Market, Limit, Stop or StopLimit.

    Returns:
        FillResult with the fill price and index, or None when the order does
        not fill against this sequence (including an empty sequence).
    """
    if not prices:
        return None

    if isinstance(order_type, Market):
        return FillResult(price=prices[0], index=0)

    if isinstance(order_type, Limit):
        return _scan(prices, _limit_condition(side, order_type.price), order_type.price)

    if isinstance(order_type, Stop):
        return _scan(prices, _stop_condition(side, order_type.price), order_type.price)

    if isinstance(order_type, StopLimit):
        trigger = _scan(
            prices,
            _stop_condition(side, order_type.stop_price),
            order_type.stop_price,
        )
        if trigger is None:
            return None
        return _scan(
            prices,
            _limit_condition(side, order_type.limit_price),
            order_type.limit_price,
            start=trigger.index,
            leg_open=trigger.price,
        )

    raise TypeError(f"Unsupported order type: {order_type!r}")


# ============================================================================
# Internal helpers
# ============================================================================

def _stop_reachable(bar: PriceBar, side: Side, stop_price: float) -> bool:
    if side is Side.BUY:
        return bar.high >= stop_price
    return bar.low <= stop_price


def _limit_condition(side: Side, limit_price: float) -> Condition:
    if side is Side.BUY:
        return lambda price: price <= limit_price
    return lambda price: price >= limit_price


def _stop_condition(side: Side, stop_price: float) -> Condition:
    if side is Side.BUY:
        return lambda price: price >= stop_price
    return lambda price: price <= stop_price


def _scan(
    prices: Sequence[float],
    condition: Condition,
    trigger_price: float,
    start: int = 0,
    leg_open: Optional[float] = None,
) -> Optional[FillResult]:
    """
    Threshold crossing scan with gap priority.

    The leg opens at ``prices[start]`` unless ``leg_open`` overrides the
    observed opening price (a stop-limit leg opens at its trigger price).
    An opening that already satisfies ``condition`` fills at the opening
    price; a later point that satisfies it fills at ``trigger_price``.
    """
    if start >= len(prices):
        return None

    opening = prices[start] if leg_open is None else leg_open
    if condition(opening):
        return FillResult(price=opening, index=start)

    # Every earlier point failed the condition, so the first point that
    # satisfies it is the unsatisfied -> satisfied transition.
    for i in range(start + 1, len(prices)):
        if condition(prices[i]):
            return FillResult(price=trigger_price, index=i)
    return None
