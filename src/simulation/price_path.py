"""
Synthetic intraday price paths reconstructed from daily OHLC bars.

**Conceptual**: A daily bar tells us four prices (open, high, low, close) but
not the order in which the high and low happened, nor anything in between.
To decide whether a resting order would have filled during the day, the
engine needs *some* ordered sequence of prices that is consistent with the
bar. This module produces one:

  1. Waypoints: the path visits Open → High → Low → Close or
     Open → Low → High → Close. The order is a fair coin flip from the
     caller's random generator; both are valid reconstructions of the same
     bar regardless of its direction.
  2. Timing: the times of the two extreme waypoints are drawn from the
     distribution profile (see :class:`DistributionProfile`) and mapped to
     distinct interior indices, so the profile decides how many points each
     of the three segments receives. Uniform keeps the extremes inside the
     middle 60% of the bar. The fraction_of_day grid follows the same
     profile.
  3. Interpolation: between consecutive waypoints, prices follow a Brownian
     bridge driven by Student's t noise (fat tails, controlled by
     ``degrees_of_freedom``). The bridge drift pulls every step toward the
     segment's endpoint and each price is clamped to the segment's own span,
     so the walk can never leave ``[bar.low, bar.high]``.

**Mathematical**: For a segment from price ``a`` to ``b`` with ``n`` interior
points, step ``i`` (1-based) moves the current price ``x`` by

    x_i = clip(x_{i-1} + (b - x_{i-1}) / (n + 2 - i) + s * T_i, min(a,b), max(a,b))

where ``T_i ~ Student-t(df)`` and ``s = vol_scale * |b - a| / sqrt(n + 1)``.
The noise amplitude ``vol_scale`` is inferred from the bar itself (see
:func:`infer_volatility_scale`). The segment then ends exactly at ``b``
because ``b`` is appended as the next waypoint.

**Reproducibility**: All randomness comes from one ``numpy.random.Generator``.
Pass ``rng`` explicitly, or set ``PathConfig.seed`` to get bit-identical paths
for the same ``(bar, config)``; with neither, the generator is seeded from OS
entropy.

**Edge cases**:
  - ``total_points <= 4`` returns exactly the four waypoints, no interpolation.
  - A flat bar (high == low) yields a constant path.
  - A segment whose endpoints are equal stays flat.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
import math
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from src.data.bars import PriceBar
from src.utils.errors import ConfigurationError


DEFAULT_TOTAL_POINTS = 390  # one-minute resolution over a 6.5 hour session
DEFAULT_DEGREES_OF_FREEDOM = 4.0

# Volatility inference constants
TYPICAL_RANGE_TO_BODY = 2.5
TYPICAL_RANGE_PCT = 0.02
MAX_VOLATILITY_FACTOR = 2.0

# Steepness of the J-shaped / reverse-J exponential densities
PROFILE_DECAY_RATE = 3.0

# Uniform extremes stay out of the first and last 20% of the bar
UNIFORM_EXTREME_MARGIN = 0.2

_CDF_GRID = np.linspace(0.0, 1.0, 1001)


class DistributionProfile(Enum):
    """
    Where in time the path's points are concentrated.

    - UNIFORM: evenly spaced through the bar.
    - U_SHAPED: clustered near the start and end of each segment (open and
      close auction activity around every turning point).
    - J_SHAPED: increasingly dense toward the end of the bar.
    - REVERSE_J: dense at the start of the bar, thinning out toward the close.
    """
    UNIFORM = "uniform"
    U_SHAPED = "u_shaped"
    J_SHAPED = "j_shaped"
    REVERSE_J = "reverse_j"


@dataclass(frozen=True)
class PathConfig:
    """
    Configuration for path generation.

    Attributes:
        profile: Time density of the generated points.
        total_points: Number of points in the path. Values <= 4 produce the
                      bare four-waypoint path.
        seed: Seed for the random generator; None means non-reproducible.
        degrees_of_freedom: Student's t degrees of freedom for the bridge
                            noise. Lower values mean fatter tails (3-5 is
                            realistic for equities, >30 is close to Gaussian).

    Raises:
        ConfigurationError: If total_points or seed is negative, or
                            degrees_of_freedom is not a positive finite
                            number.
    """
    profile: DistributionProfile = DistributionProfile.UNIFORM
    total_points: int = DEFAULT_TOTAL_POINTS
    seed: Optional[int] = None
    degrees_of_freedom: float = DEFAULT_DEGREES_OF_FREEDOM

    def __post_init__(self):
        if self.total_points < 0:
            raise ConfigurationError(
                f"total_points must be >= 0, got {self.total_points}"
            )
        if not (math.isfinite(self.degrees_of_freedom) and self.degrees_of_freedom > 0):
            raise ConfigurationError(
                f"degrees_of_freedom must be positive, got {self.degrees_of_freedom}"
            )
        if self.seed is not None and self.seed < 0:
            raise ConfigurationError(f"seed must be >= 0, got {self.seed}")


DEFAULT_PATH_CONFIG = PathConfig()


@dataclass(frozen=True)
class PathPoint:
    """
    A single point on an intraday path.

    Attributes:
        price: Price at this point.
        fraction_of_day: Time within the bar, 0.0 = open, 1.0 = close.
    """
    price: float
    fraction_of_day: float


@dataclass(frozen=True)
class IntradayPath:
    """
    Ordered intraday path from the bar's open to its close.

    Attributes:
        points: Path points in time order.
        waypoint_indices: Positions of the open, the two extremes and the
                          close within ``points``.
    """
    points: tuple[PathPoint, ...]
    waypoint_indices: tuple[int, ...] = ()

    def __iter__(self) -> Iterator[PathPoint]:
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def prices(self) -> list[float]:
        return [point.price for point in self.points]

    def to_series(self) -> pd.Series:
        """Prices as a Series indexed by fraction_of_day."""
        return pd.Series(
            self.prices,
            index=pd.Index([p.fraction_of_day for p in self.points], name='fraction_of_day'),
            name='price',
        )


def infer_volatility_scale(bar: PriceBar) -> float:
    """
    Infer a noise scaling factor from the shape and size of a bar.

    **Conceptual**: Two bars with the same range can imply very different
    intraday behaviour. A long-bodied bar with small wicks was directional; a
    doji with long wicks was choppy. Likewise a 4% range is a wilder day than
    a 0.5% range. The factor combines both views:

      - shape = (range / body) / 2.5, capped at 2 (a doji counts as 2)
      - magnitude = (range / open) / 2%, capped at 2
      - scale = sqrt(shape * magnitude)

    Returns:
        ~1.0 for a typical bar, below 1 for quiet directional bars, up to 2
        for large choppy bars, and 0.0 for a flat bar.
    """
    price_range = bar.high - bar.low
    if price_range == 0:
        return 0.0

    body = abs(bar.close - bar.open)
    if body == 0:
        shape_factor = MAX_VOLATILITY_FACTOR
    else:
        shape_factor = min((price_range / body) / TYPICAL_RANGE_TO_BODY, MAX_VOLATILITY_FACTOR)

    if bar.open == 0:
        magnitude_factor = MAX_VOLATILITY_FACTOR
    else:
        range_pct = price_range / abs(bar.open)
        magnitude_factor = min(range_pct / TYPICAL_RANGE_PCT, MAX_VOLATILITY_FACTOR)

    return math.sqrt(shape_factor * magnitude_factor)


def generate_path(
    bar: PriceBar,
    config: PathConfig = DEFAULT_PATH_CONFIG,
    rng: Optional[np.random.Generator] = None,
) -> IntradayPath:
    """
    Generate a synthetic intraday path consistent with an OHLC bar.

    **Guarantees** (for any config):
      - first price == bar.open, last price == bar.close
      - bar.open, bar.high, bar.low and bar.close all appear in the path
      - every price lies in [bar.low, bar.high]
      - fraction_of_day runs from 0.0 to 1.0 and never decreases
      - len(path) == max(config.total_points, 4)

    Args:
        bar: The OHLC bar to reconstruct.
        config: Path configuration (profile, resolution, seed, tail heaviness).
        rng: Random generator to draw from. When omitted, one is created from
             ``config.seed``.

    Returns:
        IntradayPath from open to close.
    """
    if rng is None:
        rng = np.random.default_rng(config.seed)

    high_first = bool(rng.random() < 0.5)
    if high_first:
        waypoints = [bar.open, bar.high, bar.low, bar.close]
    else:
        waypoints = [bar.open, bar.low, bar.high, bar.close]

    if config.total_points <= 4:
        fractions = [0.0, 1.0 / 3.0, 2.0 / 3.0, 1.0]
        return IntradayPath(
            tuple(
                PathPoint(price=price, fraction_of_day=fraction)
                for price, fraction in zip(waypoints, fractions)
            ),
            waypoint_indices=(0, 1, 2, 3),
        )

    n = config.total_points
    indices = _waypoint_indices(rng, config.profile, n)
    times = _time_grid(config.profile, indices, n)
    volatility_scale = infer_volatility_scale(bar)

    prices = np.empty(n)
    prices[indices] = waypoints
    for k in range(3):
        start_idx, end_idx = indices[k], indices[k + 1]
        prices[start_idx + 1:end_idx] = _bridge_segment(
            rng,
            start_price=waypoints[k],
            end_price=waypoints[k + 1],
            n_interior=end_idx - start_idx - 1,
            volatility_scale=volatility_scale,
            degrees_of_freedom=config.degrees_of_freedom,
        )

    return IntradayPath(
        tuple(
            PathPoint(price=float(price), fraction_of_day=float(t))
            for price, t in zip(prices, times)
        ),
        waypoint_indices=tuple(indices),
    )


# ============================================================================
# Internal helpers
# ============================================================================

def _waypoint_indices(
    rng: np.random.Generator,
    profile: DistributionProfile,
    n: int,
) -> list[int]:
    """
    Pick [0, first_extreme, second_extreme, n - 1] with distinct interior extremes.

    Uniform draws both extremes from the middle 60% of the path. The other
    profiles sample two times from their density and take floor(t * n),
    clamped to [1, n - 2].

    Requires n >= 5 so that [1, n - 2] holds at least three indices.
    """
    if profile is DistributionProfile.UNIFORM:
        middle_start = max(1, int(n * UNIFORM_EXTREME_MARGIN))
        middle_end = min(n - 2, int(n * (1.0 - UNIFORM_EXTREME_MARGIN)))
        t1, t2 = rng.integers(middle_start, middle_end + 1, size=2)
    else:
        times = _inverse_cdf(profile, rng.random(2))
        t1, t2 = np.clip(np.floor(times * n).astype(int), 1, n - 2)
    first, second = sorted((int(t1), int(t2)))
    if first == second:
        if second < n - 2:
            second += 1
        else:
            first -= 1
    return [0, first, second, n - 1]


def _density(profile: DistributionProfile, t: np.ndarray) -> np.ndarray:
    """Relative (unnormalized) density of points at normalized time t."""
    if profile is DistributionProfile.U_SHAPED:
        # 2.0 at both ends, 1.0 at the midpoint
        return 2.0 * (t ** 2 + (1.0 - t) ** 2)
    if profile is DistributionProfile.J_SHAPED:
        return np.exp(PROFILE_DECAY_RATE * (t - 1.0))
    if profile is DistributionProfile.REVERSE_J:
        return np.exp(-PROFILE_DECAY_RATE * t)
    return np.ones_like(t)


@lru_cache(maxsize=None)
def _normalized_cdf(profile: DistributionProfile) -> np.ndarray:
    density = _density(profile, _CDF_GRID)
    increments = 0.5 * (density[1:] + density[:-1]) * np.diff(_CDF_GRID)
    cdf = np.concatenate(([0.0], np.cumsum(increments)))
    return cdf / cdf[-1]


def _inverse_cdf(profile: DistributionProfile, u: np.ndarray) -> np.ndarray:
    """Map evenly spaced quantiles in [0, 1] to times distributed by the profile."""
    if profile is DistributionProfile.UNIFORM:
        return u
    return np.interp(u, _normalized_cdf(profile), _CDF_GRID)


def _time_grid(profile: DistributionProfile, indices: list[int], n: int) -> np.ndarray:
    """fraction_of_day for each of the n path indices."""
    base = np.linspace(0.0, 1.0, n)
    if profile in (DistributionProfile.J_SHAPED, DistributionProfile.REVERSE_J):
        return _inverse_cdf(profile, base)
    if profile is DistributionProfile.UNIFORM:
        return base

    # U-shaped: cluster points toward both ends of every segment
    times = base.copy()
    for start_idx, end_idx in zip(indices[:-1], indices[1:]):
        local = np.linspace(0.0, 1.0, end_idx - start_idx + 1)
        warped = _inverse_cdf(profile, local)
        times[start_idx:end_idx + 1] = base[start_idx] + (base[end_idx] - base[start_idx]) * warped
    return times


def _bridge_segment(
    rng: np.random.Generator,
    start_price: float,
    end_price: float,
    n_interior: int,
    volatility_scale: float,
    degrees_of_freedom: float,
) -> np.ndarray:
    """Interior prices of one waypoint-to-waypoint segment (endpoints excluded)."""
    if n_interior <= 0:
        return np.empty(0)

    low_bound = min(start_price, end_price)
    high_bound = max(start_price, end_price)
    noise_scale = volatility_scale * (high_bound - low_bound) / math.sqrt(n_interior + 1)
    noise = rng.standard_t(degrees_of_freedom, size=n_interior) * noise_scale

    prices = np.empty(n_interior)
    current = start_price
    for i in range(n_interior):
        # Bridge drift: spread the remaining distance over the remaining steps
        remaining_steps = n_interior + 1 - i
        drift = (end_price - current) / remaining_steps
        current = min(max(current + drift + noise[i], low_bound), high_bound)
        prices[i] = current
    return prices
