"""
Clock abstraction for timestamping simulated fills.

**Conceptual**: The matching engine stamps every Trade and ExecutionReport
with "now". In a backtest, "now" is the simulated session being replayed,
not the wall clock, so the engine asks an injected clock instead of calling
``pd.Timestamp.now()`` directly. Tests and backtest drivers use a
FrozenClock (optionally stepped forward bar by bar); live-ish tooling uses
RealClock.

All clocks return timezone-aware UTC ``pd.Timestamp`` values so timestamps
line up with the rest of the pandas-based data tooling.
"""

from datetime import datetime
from typing import Protocol

import pandas as pd


class Clock(Protocol):
    """
    Abstract time source protocol.

    Any object with a ``now()`` method returning a ``pd.Timestamp`` can be
    passed where a Clock is expected.
    """

    def now(self) -> pd.Timestamp:
        """Return the current time according to this clock."""
        ...


class RealClock:
    """Clock that returns the actual current system time (UTC)."""

    def now(self) -> pd.Timestamp:
        return pd.Timestamp.now(tz="UTC")


class FrozenClock:
    """
    Clock that returns a fixed timestamp until it is explicitly moved.

    **Usage**:
        clock = FrozenClock(datetime(2024, 1, 15, tzinfo=timezone.utc))
        engine = MatchingEngine(config, clock=clock)

        for session, bars in replay:
            clock.set(session)
            engine.update_market(bars)
            engine.process_orders(order_manager)

    Naive datetimes are interpreted as UTC.
    """

    def __init__(self, fixed_now: datetime | pd.Timestamp):
        self._fixed_now = _to_utc(fixed_now)

    def now(self) -> pd.Timestamp:
        return self._fixed_now

    def set(self, new_now: datetime | pd.Timestamp) -> None:
        """Move the frozen time to ``new_now`` (e.g. the next simulated session)."""
        self._fixed_now = _to_utc(new_now)


def _to_utc(value: datetime | pd.Timestamp) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")
