"""
Error classes for the fill simulator.

**Conceptual**: The simulator has a small error taxonomy.
Missing market data and infeasible orders are *not* errors (the order simply
stays pending). What remains are configuration mistakes, invalid orders
rejected at creation time, and order-manager lookups for ids that do not
exist. Each gets its own exception type so callers can catch precisely what
they can recover from.
"""


class ConfigurationError(ValueError):
    """Raised when an engine, commission or path configuration is invalid."""
    pass


class OrderValidationError(ValueError):
    """
    Raised when order parameters fail validation at creation time.

    Attributes:
        violations: Every individual validation message, in the order they
                    were detected. The exception message joins them.
    """

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class OrderNotFoundError(KeyError):
    """Raised when an order id is not known to the order manager."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(order_id)

    def __str__(self) -> str:
        return f"Order not found: {self.order_id}"


class DuplicateOrderError(ValueError):
    """Raised when an order is submitted with an id that already exists."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order already exists: {order_id}")
