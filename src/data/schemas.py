"""
Schema validation for OHLC bars and raw price frames.

**Conceptual**: Every price the fill engine sees must describe a physically
possible bar: the low is the lowest price of the period, the high the
highest, and both the open and close sit between them. A bar that violates
``low <= min(open, close) <= max(open, close) <= high`` cannot be walked by
any intraday path, so it is rejected at construction time with an actionable
message rather than producing nonsense fills later.

The raw price column names match the CSV contract used by the historical
data tooling (``open_price``, ``high_price``, ``low_price``,
``closing_price``), so frames loaded there can be fed straight into
:func:`src.data.bars.bars_from_frame`.
"""

import math

import pandas as pd


class SchemaValidationError(Exception):
    """
    Raised when market data does not conform to the expected schema.

    The message always includes enough context (symbol, row, offending
    values) to fix the input without a debugger.
    """
    pass


# Raw price columns consumed by bars_from_frame
RAW_PRICE_REQUIRED_COLUMNS = [
    'open_price',
    'high_price',
    'low_price',
    'closing_price',
]


def validate_ohlc(
    open_price: float,
    high_price: float,
    low_price: float,
    close_price: float,
    context: str | None = None,
) -> None:
    """
    Validate that four prices form an OHLC-consistent bar.

    Args:
        open_price: First traded price of the period.
        high_price: Highest traded price of the period.
        low_price: Lowest traded price of the period.
        close_price: Last traded price of the period.
        context: Optional description (e.g. "AAPL bar") prefixed to errors.

    Raises:
        SchemaValidationError: If any price is not finite, or the ordering
                               invariant low <= open/close <= high fails.
    """
    ctx = f"{context}: " if context else ""

    prices = {
        'open': open_price,
        'high': high_price,
        'low': low_price,
        'close': close_price,
    }
    not_finite = [name for name, value in prices.items() if not math.isfinite(value)]
    if not_finite:
        raise SchemaValidationError(
            f"{ctx}Non-finite prices for {not_finite}: {prices}"
        )

    if not (low_price <= min(open_price, close_price)
            and max(open_price, close_price) <= high_price):
        raise SchemaValidationError(
            f"{ctx}Prices are not OHLC-consistent "
            f"(expected low <= open, close <= high). Got {prices}."
        )


def validate_raw_price_frame(
    df: pd.DataFrame,
    context: str | None = None,
) -> None:
    """
    Validate that a DataFrame carries the raw OHLC columns with no gaps.

    Only column presence and missing values are checked here; per-row OHLC
    consistency is enforced when each row becomes a PriceBar.

    Args:
        df: Frame with one row per bar.
        context: Optional source description included in error messages.

    Raises:
        SchemaValidationError: If required columns are missing or contain NaN.
    """
    ctx = f"{context}: " if context else ""

    missing_cols = set(RAW_PRICE_REQUIRED_COLUMNS) - set(df.columns)
    if missing_cols:
        raise SchemaValidationError(
            f"{ctx}Missing required columns: {sorted(missing_cols)}. "
            f"Expected columns: {RAW_PRICE_REQUIRED_COLUMNS}. "
            f"Found columns: {list(df.columns)}."
        )

    null_counts = df[RAW_PRICE_REQUIRED_COLUMNS].isna().sum()
    null_cols = null_counts[null_counts > 0]
    if not null_cols.empty:
        raise SchemaValidationError(
            f"{ctx}Missing values in price columns: {null_cols.to_dict()}."
        )
