"""
Engine configuration and execution output types.

**Conceptual**: The engine is configured once, at construction, with how to
charge commission and how to synthesize intraday paths. Each fill it makes
produces one immutable ``Trade`` wrapped in an ``ExecutionReport``; both are
handed to the caller (portfolio and position bookkeeping) and never retained
by the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Optional

import pandas as pd

from src.orders.types import Side
from src.simulation.price_path import PathConfig
from src.utils.errors import ConfigurationError


# Seed used for engine paths unless randomize_paths is set
DEFAULT_ENGINE_SEED = 42


@dataclass(frozen=True)
class CommissionConfig:
    """
    Per-share commission with a per-trade floor.

    commission = max(quantity * per_share, minimum)

    Attributes:
        per_share: Commission charged per share traded (e.g., 0.01).
        minimum: Minimum commission per trade (e.g., 1.0).

    Raises:
        ConfigurationError: If either value is negative or not finite.
    """
    per_share: float = 0.0
    minimum: float = 0.0

    def __post_init__(self):
        for name in ('per_share', 'minimum'):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(
                    f"Commission {name} must be a non-negative number, got {value}"
                )

    def commission_for(self, quantity: float) -> float:
        return max(quantity * self.per_share, self.minimum)


@dataclass(frozen=True)
class EngineConfig:
    """
    Matching engine configuration.

    Attributes:
        commission: How trade commissions are computed.
        path_config: How intraday paths are synthesized for each bar. When its
                     seed is None, DEFAULT_ENGINE_SEED is used so engine
                     runs stay reproducible.
        randomize_paths: If True, ignore any seed and draw paths from OS
                         entropy (non-reproducible runs).
    """
    commission: CommissionConfig = field(default_factory=CommissionConfig)
    path_config: PathConfig = field(
        default_factory=lambda: PathConfig(seed=DEFAULT_ENGINE_SEED)
    )
    randomize_paths: bool = False


class FillStatus(Enum):
    FILLED = "filled"
    PARTIALLY_FILLED = "partially_filled"
    UNFILLED = "unfilled"


@dataclass(frozen=True)
class Trade:
    """
    A single execution against an order.

    Attributes:
        id: Trade identifier ("trade_<order_id>").
        order_id: The order this trade executed.
        symbol: Instrument symbol.
        side: BUY or SELL.
        quantity: Quantity executed.
        price: Execution price.
        commission: Commission charged for this trade.
        timestamp: When the trade happened (engine clock time).
    """
    id: str
    order_id: str
    symbol: str
    side: Side
    quantity: float
    price: float
    commission: float
    timestamp: pd.Timestamp


@dataclass(frozen=True)
class ExecutionReport:
    """
    Outcome of matching one order during one engine cycle.

    Only orders that had activity produce a report.

    Attributes:
        order_id: The order that was executed.
        status: FILLED, PARTIALLY_FILLED or UNFILLED.
        filled_quantity: Quantity filled in this cycle.
        remaining_quantity: Quantity still open afterwards.
        average_price: Average execution price, None if nothing filled.
        trades: Trades generated in this cycle.
        timestamp: When execution was attempted.
    """
    order_id: str
    status: FillStatus
    filled_quantity: float
    remaining_quantity: float
    average_price: Optional[float]
    trades: tuple[Trade, ...]
    timestamp: pd.Timestamp
