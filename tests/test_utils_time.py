"""
Tests for src/utils/time.py

These tests verify the clock abstraction used to timestamp fills works for
both real and frozen time.
"""

from datetime import datetime, timezone, timedelta
import time

import pandas as pd

from src.utils.time import Clock, RealClock, FrozenClock


def test_real_clock_returns_current_time():
    """Test that RealClock returns a UTC time close to actual current time."""
    clock = RealClock()

    before = pd.Timestamp.now(tz="UTC")
    clock_time = clock.now()
    after = pd.Timestamp.now(tz="UTC")

    assert before <= clock_time <= after
    assert str(clock_time.tz) == "UTC"


def test_real_clock_advances():
    """Test that RealClock returns different times on successive calls."""
    clock = RealClock()

    time1 = clock.now()
    time.sleep(0.01)
    time2 = clock.now()

    assert time2 > time1


def test_frozen_clock_returns_fixed_time():
    """Test that FrozenClock always returns the configured timestamp."""
    fixed_time = datetime(2015, 1, 5, 12, 30, 45, tzinfo=timezone.utc)
    clock = FrozenClock(fixed_time)

    assert clock.now() == pd.Timestamp(fixed_time)
    assert clock.now() == clock.now()


def test_frozen_clock_localizes_naive_datetime_to_utc():
    """Naive datetimes are treated as UTC."""
    clock = FrozenClock(datetime(2024, 1, 15, 9, 30))

    assert clock.now() == pd.Timestamp("2024-01-15 09:30", tz="UTC")


def test_frozen_clock_converts_other_timezones_to_utc():
    """Aware datetimes in other zones are converted, not relabelled."""
    eastern = timezone(timedelta(hours=-5))
    clock = FrozenClock(datetime(2024, 1, 15, 9, 30, tzinfo=eastern))

    assert clock.now() == pd.Timestamp("2024-01-15 14:30", tz="UTC")


def test_frozen_clock_set_moves_time():
    """set() steps the frozen clock, e.g. to the next simulated session."""
    clock = FrozenClock(datetime(2024, 1, 15, tzinfo=timezone.utc))

    clock.set(datetime(2024, 1, 16, tzinfo=timezone.utc))

    assert clock.now() == pd.Timestamp("2024-01-16", tz="UTC")


def test_clocks_satisfy_protocol():
    """Both clocks can be used wherever a Clock is expected."""
    def read(clock: Clock) -> pd.Timestamp:
        return clock.now()

    assert isinstance(read(RealClock()), pd.Timestamp)
    assert isinstance(read(FrozenClock(datetime(2024, 1, 1))), pd.Timestamp)
