"""
Matching engine: simulated broker that fills pending orders against bars.

**Conceptual**: The engine plays the role of the exchange in a backtest. Each
simulated period the driver:

  1. calls ``update_market`` with one bar (or quote) per symbol,
  2. calls ``process_orders`` with its order manager.

For every active order the engine looks up that symbol's bar, runs the cheap
OHLC feasibility pre-check, and only when a fill is possible synthesizes an
intraday path and walks it with the fill walker. Fills are charged
commission, turned into a Trade and an ExecutionReport, and the order is
marked filled in the order manager.

When real sub-bar data is available, ``process_mini_bars`` walks the
supplied mini-bar sequence for one symbol instead of a synthetic path.

**Financial assumptions**:
  - All-or-nothing fills: an order either fills its full remaining quantity
    or does not trade. There is no shared liquidity, so orders are matched
    independently and the processing order never changes an outcome.
  - No price impact and no slippage beyond the gap rule (a gap through a
    resting order fills at the observed gap price).
  - Commission is max(quantity * per_share, minimum) per trade.

**Failure semantics**:
  - No market data for a symbol is not an error: its orders stay pending.
  - An infeasible order is not an error either, it just stays pending.
  - Errors raised by the order manager (e.g. OrderNotFoundError on update)
    propagate to the caller unchanged.

The engine is synchronous and keeps no history beyond the latest market
data per symbol. It is not thread-safe; use one engine per simulation worker.
"""

from dataclasses import dataclass
import logging
from typing import Iterable, Optional, Sequence, Union
import zlib

import numpy as np
import pandas as pd

from src.data.bars import (
    MiniBar,
    PriceBar,
    Quote,
    bar_from_prices,
    mini_bar_prices,
    quote_to_bar,
)
from src.execution.fill_walker import evaluate, might_fill
from src.execution.types import (
    DEFAULT_ENGINE_SEED,
    EngineConfig,
    ExecutionReport,
    FillStatus,
    Trade,
)
from src.orders.manager import OrderManager
from src.orders.types import Order
from src.simulation.price_path import IntradayPath, generate_path
from src.utils.time import Clock, RealClock

logger = logging.getLogger(__name__)


MarketInput = Union[PriceBar, Quote]


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Latest market data stored for one symbol.

    Attributes:
        bar: The bar orders are matched against (quotes are converted).
        bid: Bid from the original quote, None for bar input.
        ask: Ask from the original quote, None for bar input.
        last: Last price (quote last, or the bar's close).
        timestamp: Engine clock time when the data was stored.
    """
    bar: PriceBar
    bid: Optional[float]
    ask: Optional[float]
    last: Optional[float]
    timestamp: pd.Timestamp


class MatchingEngine:
    """
    Simulated broker that matches orders against per-symbol market data.

    **Usage**:
        engine = MatchingEngine(EngineConfig(commission=CommissionConfig(0.01, 1.0)))
        engine.update_market([PriceBar("AAPL", 100.0, 110.0, 95.0, 105.0)])
        reports = engine.process_orders(order_manager)
    """

    def __init__(self, config: EngineConfig, clock: Optional[Clock] = None):
        """
        Args:
            config: Commission and path configuration (validated on creation).
            clock: Time source for trade and report timestamps. Defaults to
                   the system clock; backtests should pass a FrozenClock.
        """
        self._config = config
        self._clock = clock if clock is not None else RealClock()
        self._market: dict[str, MarketSnapshot] = {}

    @property
    def config(self) -> EngineConfig:
        return self._config

    def update_market(self, data: Iterable[MarketInput]) -> None:
        """
        Store the latest bar or quote for each symbol.

        Each entry fully replaces whatever was stored for its symbol (no
        merging). Reports already returned are unaffected.
        """
        now = self._clock.now()
        for item in data:
            if isinstance(item, Quote):
                snapshot = MarketSnapshot(
                    bar=quote_to_bar(item),
                    bid=item.bid,
                    ask=item.ask,
                    last=item.last,
                    timestamp=now,
                )
            elif isinstance(item, PriceBar):
                snapshot = MarketSnapshot(
                    bar=item,
                    bid=None,
                    ask=None,
                    last=item.close,
                    timestamp=now,
                )
            else:
                raise TypeError(f"Expected PriceBar or Quote, got {type(item).__name__}")
            self._market[snapshot.bar.symbol] = snapshot

    def get_market_data(
        self, symbol: str
    ) -> Optional[tuple[Optional[float], Optional[float], Optional[float]]]:
        """Return (bid, ask, last) for the symbol, or None if nothing is stored."""
        snapshot = self._market.get(symbol)
        if snapshot is None:
            return None
        return (snapshot.bid, snapshot.ask, snapshot.last)

    def get_bar(self, symbol: str) -> Optional[PriceBar]:
        """Return the bar orders for ``symbol`` are currently matched against."""
        snapshot = self._market.get(symbol)
        return snapshot.bar if snapshot is not None else None

    def synthesize_path(self, bar: PriceBar) -> IntradayPath:
        """
        The synthetic path :meth:`process_orders` walks for ``bar``.

        Unless ``randomize_paths`` is set, repeated calls with the same bar
        return the same path.
        """
        return generate_path(bar, self._config.path_config, rng=self._path_rng(bar))

    def process_orders(self, order_manager: OrderManager) -> list[ExecutionReport]:
        """
        Match every active order against its symbol's stored bar.

        All orders on the same symbol are walked against the same synthetic
        path, generated lazily the first time a feasible order needs it.

        Returns:
            One ExecutionReport per order that filled, in the order the
            manager listed them. Orders without activity produce no report.

        Raises:
            Whatever the order manager raises while listing or updating
            orders (e.g. OrderNotFoundError).
        """
        paths: dict[str, list[float]] = {}
        reports: list[ExecutionReport] = []

        for order in order_manager.list_orders(active_only=True):
            snapshot = self._market.get(order.symbol)
            if snapshot is None:
                logger.debug("No market data for %s, order %s stays pending",
                             order.symbol, order.id)
                continue

            if not might_fill(snapshot.bar, order.side, order.order_type):
                logger.debug("Order %s cannot fill within %s", order.id, snapshot.bar)
                continue

            prices = paths.get(order.symbol)
            if prices is None:
                prices = self.synthesize_path(snapshot.bar).prices
                paths[order.symbol] = prices

            report = self._match(order_manager, order, prices)
            if report is not None:
                reports.append(report)

        return reports

    def process_mini_bars(
        self,
        symbol: str,
        order_manager: OrderManager,
        mini_bars: Sequence[MiniBar],
    ) -> list[ExecutionReport]:
        """
        Match active orders for one symbol against supplied mini-bars.

        Identical to :meth:`process_orders` except that the walked sequence is
        the mini-bars' open/close prices (ordered by time_fraction) instead of
        a synthetic path, and orders for other symbols are ignored. Stored
        market data is neither read nor changed.

        Returns:
            Reports for orders on ``symbol`` that filled; an empty list when
            no mini-bars are supplied.
        """
        prices = mini_bar_prices(mini_bars)
        if not prices:
            return []
        bar = bar_from_prices(symbol, prices)

        reports: list[ExecutionReport] = []
        for order in order_manager.list_orders(symbol=symbol, active_only=True):
            if not might_fill(bar, order.side, order.order_type):
                continue
            report = self._match(order_manager, order, prices)
            if report is not None:
                reports.append(report)
        return reports

    # ========================================================================
    # Internal helper methods
    # ========================================================================

    def _path_rng(self, bar: PriceBar) -> np.random.Generator:
        """
        Random generator for one bar's path.

        Unless paths are randomized, the generator is seeded from the
        configured seed plus a stable digest of the bar, so the same bar
        always yields the same path while different bars (and days) do not
        all share one waypoint order.
        """
        if self._config.randomize_paths:
            return np.random.default_rng()
        seed = self._config.path_config.seed
        if seed is None:
            seed = DEFAULT_ENGINE_SEED
        digest = zlib.crc32(
            f"{bar.symbol}|{bar.open!r}|{bar.high!r}|{bar.low!r}|{bar.close!r}".encode()
        )
        return np.random.default_rng([seed, digest])

    def _match(
        self,
        order_manager: OrderManager,
        order: Order,
        prices: Sequence[float],
    ) -> Optional[ExecutionReport]:
        fill = evaluate(prices, order.side, order.order_type)
        if fill is None:
            logger.debug("Order %s did not fill", order.id)
            return None
        return self._execute(order_manager, order, fill.price)

    def _execute(
        self,
        order_manager: OrderManager,
        order: Order,
        price: float,
    ) -> ExecutionReport:
        """
        Book a full fill of the order's remaining quantity at ``price``.

        Side effects:
            Stores the filled order in the order manager.
        """
        now = self._clock.now()
        quantity = order.remaining_quantity
        commission = self._config.commission.commission_for(quantity)

        trade = Trade(
            id=f"trade_{order.id}",
            order_id=order.id,
            symbol=order.symbol,
            side=order.side,
            quantity=quantity,
            price=price,
            commission=commission,
            timestamp=now,
        )

        order_manager.update_order(order.with_fill(quantity, price, now))

        logger.info("Filled %s %s %s @ %.4f (commission %.2f)",
                    order.side.value, quantity, order.symbol, price, commission)

        return ExecutionReport(
            order_id=order.id,
            status=FillStatus.FILLED,
            filled_quantity=quantity,
            remaining_quantity=0.0,
            average_price=price,
            trades=(trade,),
            timestamp=now,
        )
