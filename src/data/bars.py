"""
Market data inputs for the matching engine.

**Conceptual**: The engine matches orders against one ``PriceBar`` per symbol
per simulated period. Market data can arrive in three shapes:

  - ``PriceBar``: a daily OHLC summary (the normal backtest input).
  - ``Quote``: a bid/ask/last snapshot, kept for callers that only have
    quotes. It is converted to an equivalent bar by :func:`quote_to_bar`
    before matching.
  - ``MiniBar``: a finer-grained segment of a bar where only the segment's
    open and close are known. A sequence of mini-bars replaces the synthetic
    intraday path when real sub-bar data is available.

All three are immutable; updates replace them wholesale.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from src.data.schemas import (
    SchemaValidationError,
    validate_ohlc,
    validate_raw_price_frame,
)


@dataclass(frozen=True)
class PriceBar:
    """
    OHLC summary of one symbol over one period.

    Construction validates ``low <= min(open, close) <= max(open, close) <= high``.

    Attributes:
        symbol: Instrument symbol (e.g., "AAPL").
        open: First price of the period.
        high: Highest price of the period.
        low: Lowest price of the period.
        close: Last price of the period.
    """
    symbol: str
    open: float
    high: float
    low: float
    close: float

    def __post_init__(self):
        validate_ohlc(self.open, self.high, self.low, self.close,
                      context=f"{self.symbol} bar")


@dataclass(frozen=True)
class Quote:
    """
    Bid/ask/last snapshot for one symbol. Any member may be missing.

    Attributes:
        symbol: Instrument symbol.
        bid: Best bid (highest price a buyer will pay), if known.
        ask: Best ask (lowest price a seller will accept), if known.
        last: Last traded price, if known.
    """
    symbol: str
    bid: Optional[float] = None
    ask: Optional[float] = None
    last: Optional[float] = None


@dataclass(frozen=True)
class MiniBar:
    """
    One segment of a bar where only the endpoints are known.

    Attributes:
        time_fraction: Position of the segment within the bar, in [0, 1].
        open_price: First price of the segment.
        close_price: Last price of the segment.
    """
    time_fraction: float
    open_price: float
    close_price: float

    def __post_init__(self):
        if not 0.0 <= self.time_fraction <= 1.0:
            raise SchemaValidationError(
                f"MiniBar time_fraction must be in [0, 1], got {self.time_fraction}"
            )


def quote_to_bar(quote: Quote) -> PriceBar:
    """
    Convert a quote into the equivalent degenerate bar.

    The reference price is ``last`` when present, otherwise the bid/ask
    midpoint (or whichever side exists). The bar opens and closes at the
    reference price and spans every supplied price:

        open = close = reference
        high = max(bid, ask, last)
        low  = min(bid, ask, last)

    Market orders therefore fill at ``last``, as they would against a quote.

    Args:
        quote: Snapshot with at least one of bid/ask/last.

    Returns:
        PriceBar for the same symbol.

    Raises:
        SchemaValidationError: If the quote has no prices at all.
    """
    supplied = [p for p in (quote.bid, quote.ask, quote.last) if p is not None]
    if not supplied:
        raise SchemaValidationError(
            f"{quote.symbol} quote: at least one of bid, ask, last is required."
        )

    if quote.last is not None:
        reference = quote.last
    else:
        sides = [p for p in (quote.bid, quote.ask) if p is not None]
        reference = sum(sides) / len(sides)

    return PriceBar(
        symbol=quote.symbol,
        open=reference,
        high=max(supplied + [reference]),
        low=min(supplied + [reference]),
        close=reference,
    )


def mini_bar_prices(mini_bars: Iterable[MiniBar]) -> list[float]:
    """
    Flatten mini-bars into the price sequence walked by the fill walker.

    Segments are ordered by ``time_fraction`` (ties keep input order) and
    contribute ``open_price`` then ``close_price``.
    """
    ordered = sorted(mini_bars, key=lambda bar: bar.time_fraction)
    prices: list[float] = []
    for bar in ordered:
        prices.append(bar.open_price)
        prices.append(bar.close_price)
    return prices


def bar_from_prices(symbol: str, prices: list[float]) -> PriceBar:
    """
    Summarize an ordered price sequence as a bar (first, max, min, last).

    Used to run the OHLC pre-check against a mini-bar sequence.
    """
    if not prices:
        raise SchemaValidationError(f"{symbol}: cannot build a bar from no prices.")
    return PriceBar(
        symbol=symbol,
        open=prices[0],
        high=max(prices),
        low=min(prices),
        close=prices[-1],
    )


def bars_from_frame(df: pd.DataFrame, symbol: str) -> list[PriceBar]:
    """
    Convert a raw price DataFrame into PriceBars, one per row, in row order.

    **Functionally**:
      - Input: frame with ``open_price``, ``high_price``, ``low_price``,
        ``closing_price`` columns (other columns are ignored).
      - Output: list of PriceBar for ``symbol``.

    Row order is preserved; sort the frame chronologically before replaying
    it through the engine.

    Raises:
        SchemaValidationError: If columns are missing, contain NaN, or a row
                               is not OHLC-consistent.
    """
    validate_raw_price_frame(df, context=symbol)

    bars = []
    for row in df[['open_price', 'high_price', 'low_price', 'closing_price']].itertuples(index=False):
        bars.append(PriceBar(
            symbol=symbol,
            open=float(row.open_price),
            high=float(row.high_price),
            low=float(row.low_price),
            close=float(row.closing_price),
        ))
    return bars
