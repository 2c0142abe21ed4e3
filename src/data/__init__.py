"""
Market data types and schema enforcement.

Defines the per-symbol PriceBar the engine matches against, the Quote and
MiniBar inputs that are normalized into it, and the validation that keeps
every bar OHLC-consistent.
"""
