"""Error taxonomy shared by the ordering and notifications contexts.

Engine and dispatcher operations hand these back on their result objects
instead of raising them; only explicit confirmations (audit writes, delivery
callbacks) let them propagate.
"""


class LifecycleError(Exception):
    """Base class for order lifecycle and notification errors."""

    code = "lifecycle_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFound(LifecycleError):
    code = "not_found"


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class NotificationLogNotFound(NotFound):
    def __init__(self, log_id: str):
        super().__init__(f"Notification log {log_id} not found")
        self.log_id = log_id


class InvalidTransition(LifecycleError):
    """Requested status change is not an edge of the order state graph."""

    code = "invalid_transition"

    def __init__(self, from_status: str | None, to_status: str):
        super().__init__(f"Invalid status transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status

    def to_dict(self) -> dict:
        return {**super().to_dict(), "from_status": self.from_status, "to_status": self.to_status}


class StaleOrderStatus(LifecycleError):
    """The order changed status between validation and the conditional write."""

    code = "stale_status"

    def __init__(self, order_id: str, expected_status: str, actual_status: str):
        super().__init__(f"Order {order_id} is {actual_status}, expected {expected_status}")
        self.order_id = order_id
        self.expected_status = expected_status
        self.actual_status = actual_status


class ProviderError(LifecycleError):
    """An external store or notification provider call failed."""

    code = "provider_error"

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider


class ConfigurationMissing(LifecycleError):
    """A channel provider has no credentials configured."""

    code = "configuration_missing"

    def __init__(self, provider: str):
        super().__init__(f"{provider} provider is not configured")
        self.provider = provider
