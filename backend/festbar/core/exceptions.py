"""Domain errors raised by services and translated to HTTP by the routes."""


class FestbarError(Exception):
    """Base class for expected, user-facing failures."""


class OrderingClosedError(FestbarError):
    """Raised when the venue is shut down or the order form is blocked."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Ordering is currently not possible ({reason})")


class WaiterCallCooldownError(FestbarError):
    """Raised when a table calls the waiter again before the cooldown ran out."""
    def __init__(self, table_number: int, retry_after_seconds: int):
        self.table_number = table_number
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Table {table_number} already called a waiter, retry in {retry_after_seconds}s"
        )


class OrderNotClaimedError(FestbarError):
    """Raised when a waiter acts on an order claimed by somebody else."""
    def __init__(self, order_id: int, waiter_name: str, claimed_by):
        self.order_id = order_id
        self.waiter_name = waiter_name
        self.claimed_by = claimed_by
        super().__init__(
            f"Order {order_id} is claimed by {claimed_by or 'nobody'}, not {waiter_name}"
        )


class PromptPendingError(FestbarError):
    """Raised when a cart is checked out while a glass prompt is still open."""


class NoPromptOpenError(FestbarError):
    """Raised when a glass prompt is answered but none is open."""
