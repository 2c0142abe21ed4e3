"""
Generic utility functions shared across modules.

Includes the clock abstraction used to timestamp trades, logging setup,
and the error classes raised by the order and execution layers.
"""
