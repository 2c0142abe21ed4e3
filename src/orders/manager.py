"""
Order creation and the in-memory order manager.

**Conceptual**: The matching engine does not own orders. Each cycle it asks an
order manager for the active orders, and when one fills it hands back an
updated Order for the manager to store. ``OrderManager`` is the protocol the
engine depends on; ``InMemoryOrderManager`` is the dict-backed implementation
used by backtest drivers and tests.

Malformed orders never reach the engine: :func:`create_order` validates
every field up front and reports all violations at once.
"""

import logging
from typing import Iterable, Optional, Protocol
from uuid import uuid4

import pandas as pd

from src.orders.types import (
    Limit,
    Order,
    OrderStatus,
    OrderType,
    Side,
    Stop,
    StopLimit,
    TimeInForce,
)
from src.utils.errors import (
    DuplicateOrderError,
    OrderNotFoundError,
    OrderValidationError,
)

logger = logging.getLogger(__name__)


class OrderManager(Protocol):
    """The part of an order manager the matching engine relies on."""

    def list_orders(
        self,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        status: Optional[OrderStatus] = None,
        active_only: bool = False,
    ) -> list[Order]:
        ...

    def update_order(self, order: Order) -> None:
        ...


def create_order(
    symbol: str,
    side: Side,
    order_type: OrderType,
    quantity: float,
    time_in_force: TimeInForce = TimeInForce.DAY,
    now: Optional[pd.Timestamp] = None,
) -> Order:
    """
    Validate order parameters and build a new PENDING order with a unique id.

    **Validation rules**:
      - symbol must be non-empty.
      - quantity must be positive.
      - limit and stop prices must be positive.
      - Buy stop-limit: stop_price <= limit_price.
      - Sell stop-limit: stop_price >= limit_price.

    Args:
        symbol: Instrument symbol.
        side: BUY or SELL.
        order_type: Market, Limit, Stop or StopLimit.
        quantity: Quantity to trade.
        time_in_force: Defaults to DAY.
        now: Creation timestamp (defaults to the current UTC time).

    Returns:
        The new Order.

    Raises:
        OrderValidationError: Listing every rule the parameters break.
    """
    violations: list[str] = []

    if not symbol:
        violations.append("Symbol cannot be empty")

    if quantity <= 0:
        violations.append(f"Quantity must be positive: {quantity:.2f}")

    if isinstance(order_type, (Limit, Stop)) and order_type.price <= 0:
        violations.append(f"Price must be positive: {order_type.price:.2f}")

    if isinstance(order_type, StopLimit):
        stop_price, limit_price = order_type.stop_price, order_type.limit_price
        if stop_price <= 0:
            violations.append(f"Stop price must be positive: {stop_price:.2f}")
        if limit_price <= 0:
            violations.append(f"Limit price must be positive: {limit_price:.2f}")
        if side is Side.BUY and stop_price > limit_price:
            violations.append(
                f"For buy stop-limit orders, stop price ({stop_price:.2f}) "
                f"must be <= limit price ({limit_price:.2f})"
            )
        if side is Side.SELL and stop_price < limit_price:
            violations.append(
                f"For sell stop-limit orders, stop price ({stop_price:.2f}) "
                f"must be >= limit price ({limit_price:.2f})"
            )

    if violations:
        raise OrderValidationError(violations)

    created_at = now if now is not None else pd.Timestamp.now(tz="UTC")
    return Order(
        id=uuid4().hex,
        symbol=symbol,
        side=side,
        order_type=order_type,
        quantity=quantity,
        time_in_force=time_in_force,
        status=OrderStatus.PENDING,
        created_at=created_at,
        updated_at=created_at,
    )


class InMemoryOrderManager:
    """
    Dict-backed order store keyed by order id.

    Insertion order is preserved, so ``list_orders`` returns orders in the
    order they were submitted.
    """

    def __init__(self):
        self._orders: dict[str, Order] = {}

    def submit_orders(self, orders: Iterable[Order]) -> None:
        """
        Add new orders.

        Raises:
            DuplicateOrderError: If any id already exists. Orders before the
                                 duplicate in ``orders`` are kept.
        """
        for order in orders:
            if order.id in self._orders:
                raise DuplicateOrderError(order.id)
            self._orders[order.id] = order
            logger.debug("Submitted order %s (%s %s)", order.id, order.side.value, order.symbol)

    def cancel_orders(self, order_ids: Iterable[str], now: Optional[pd.Timestamp] = None) -> None:
        """
        Cancel active orders by id.

        Raises:
            OrderNotFoundError: If an id is unknown.
            ValueError: If the order is no longer active.
        """
        now = now if now is not None else pd.Timestamp.now(tz="UTC")
        for order_id in order_ids:
            order = self.get_order(order_id)
            if not order.is_active:
                raise ValueError(
                    f"Order {order_id} is not active (status={order.status.value})"
                )
            self._orders[order_id] = order.with_status(OrderStatus.CANCELLED, now)

    def get_order(self, order_id: str) -> Order:
        try:
            return self._orders[order_id]
        except KeyError:
            raise OrderNotFoundError(order_id) from None

    def update_order(self, order: Order) -> None:
        """
        Replace the stored order with the same id.

        Raises:
            OrderNotFoundError: If the order was never submitted.
        """
        if order.id not in self._orders:
            raise OrderNotFoundError(order.id)
        self._orders[order.id] = order

    def list_orders(
        self,
        symbol: Optional[str] = None,
        side: Optional[Side] = None,
        status: Optional[OrderStatus] = None,
        active_only: bool = False,
    ) -> list[Order]:
        """List orders, keeping only those matching every supplied filter."""
        orders = list(self._orders.values())
        if symbol is not None:
            orders = [o for o in orders if o.symbol == symbol]
        if side is not None:
            orders = [o for o in orders if o.side is side]
        if status is not None:
            orders = [o for o in orders if o.status is status]
        if active_only:
            orders = [o for o in orders if o.is_active]
        return orders
