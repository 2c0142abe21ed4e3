"""
Order types shared by the order manager and the matching engine.

**Conceptual**: An order is an instruction to buy or sell a quantity of one
symbol under a price condition. The price condition is a tagged union with
exactly four variants:

  - ``Market``: execute at the first available price.
  - ``Limit(price)``: buy at or below / sell at or above ``price``.
  - ``Stop(price)``: once the market trades through ``price`` (up for buys,
    down for sells), execute as a market order.
  - ``StopLimit(stop_price, limit_price)``: once the stop triggers, rest as a
    limit order at ``limit_price``.

Code that needs to branch on the variant uses ``isinstance`` against these
frozen dataclasses; ``OrderType`` is the union for annotations.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

import pandas as pd


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


class TimeInForce(Enum):
    """
    How long an order remains active.

    DAY expires at the end of the session, GTC stays until cancelled, IOC
    executes immediately or cancels, FOK fills completely or cancels.
    """
    DAY = "day"
    GTC = "gtc"
    IOC = "ioc"
    FOK = "fok"


class OrderStatus(Enum):
    PENDING = "pending"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


ACTIVE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PARTIALLY_FILLED})


@dataclass(frozen=True)
class Market:
    pass


@dataclass(frozen=True)
class Limit:
    price: float


@dataclass(frozen=True)
class Stop:
    price: float


@dataclass(frozen=True)
class StopLimit:
    stop_price: float
    limit_price: float


OrderType = Union[Market, Limit, Stop, StopLimit]


@dataclass(frozen=True)
class Order:
    """
    A single order as held by the order manager.

    Orders are immutable; state changes produce a new Order via
    :meth:`with_status` or :meth:`with_fill` which the manager stores in
    place of the old one.

    Attributes:
        id: Unique order identifier.
        symbol: Instrument symbol.
        side: BUY or SELL.
        order_type: Market, Limit, Stop or StopLimit.
        quantity: Total quantity to trade (always positive).
        time_in_force: How long the order remains active.
        status: Current lifecycle status.
        filled_quantity: Quantity executed so far.
        avg_fill_price: Average execution price, once anything has filled.
        created_at: When the order was created.
        updated_at: When the order last changed.
    """
    id: str
    symbol: str
    side: Side
    order_type: OrderType
    quantity: float
    time_in_force: TimeInForce
    status: OrderStatus
    created_at: pd.Timestamp
    updated_at: pd.Timestamp
    filled_quantity: float = 0.0
    avg_fill_price: Optional[float] = None

    @property
    def is_active(self) -> bool:
        """Pending or partially filled orders are still working."""
        return self.status in ACTIVE_STATUSES

    @property
    def remaining_quantity(self) -> float:
        return self.quantity - self.filled_quantity

    def with_status(self, status: OrderStatus, now: pd.Timestamp) -> "Order":
        return replace(self, status=status, updated_at=now)

    def with_fill(self, quantity: float, price: float, now: pd.Timestamp) -> "Order":
        """
        Return a copy with ``quantity`` more filled at ``price``.

        The average fill price is volume-weighted across fills; the status
        becomes FILLED once nothing remains, PARTIALLY_FILLED otherwise.
        """
        filled = self.filled_quantity + quantity
        previous_notional = (self.avg_fill_price or 0.0) * self.filled_quantity
        avg_price = (previous_notional + quantity * price) / filled
        status = (
            OrderStatus.FILLED
            if filled >= self.quantity
            else OrderStatus.PARTIALLY_FILLED
        )
        return replace(
            self,
            filled_quantity=filled,
            avg_fill_price=avg_price,
            status=status,
            updated_at=now,
        )
