"""
Synthetic intraday price path generation.

Reconstructs an OHLC-consistent sub-period price trajectory for a bar so the
fill engine can decide whether, and at what price, resting orders traded.
"""
