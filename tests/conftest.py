"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import src...' works, and
provides shared fixtures for engine tests.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.execution.matching_engine import MatchingEngine  # noqa: E402
from src.execution.types import CommissionConfig, EngineConfig  # noqa: E402
from src.orders.manager import InMemoryOrderManager, create_order  # noqa: E402
from src.utils.time import FrozenClock  # noqa: E402


FIXED_NOW = pd.Timestamp("2024-01-15 16:00:00", tz="UTC")


@pytest.fixture
def frozen_clock():
    """Clock pinned to 2024-01-15 16:00 UTC."""
    return FrozenClock(FIXED_NOW)


@pytest.fixture
def order_manager():
    return InMemoryOrderManager()


@pytest.fixture
def make_engine(frozen_clock):
    """
    Factory for engines on the frozen clock.

    Defaults to zero commission so fill assertions only concern prices.
    """
    def _make(per_share=0.0, minimum=0.0, **config_kwargs):
        config = EngineConfig(
            commission=CommissionConfig(per_share=per_share, minimum=minimum),
            **config_kwargs,
        )
        return MatchingEngine(config, clock=frozen_clock)
    return _make


@pytest.fixture
def submit(order_manager):
    """Create one valid order, submit it, and return it."""
    def _submit(symbol, side, order_type, quantity=100.0):
        order = create_order(symbol, side, order_type, quantity, now=FIXED_NOW)
        order_manager.submit_orders([order])
        return order
    return _submit
