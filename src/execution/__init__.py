"""
Order matching against bars and intraday price paths.

Contains the OHLC feasibility pre-check, the fill walker that scans a price
sequence for gap and crossing fills, and the matching engine that ties them
to market data, commissions and execution reports.
"""
