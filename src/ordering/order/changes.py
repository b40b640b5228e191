"""In-process change feed for order rows.

The order store publishes one :class:`OrderChange` per insert, update or
delete. Subscribers register for a business (and optionally a set of
statuses) and receive the change synchronously, in publication order.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class ChangeType(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SubscriptionStatus(Enum):
    SUBSCRIBED = "SUBSCRIBED"
    CLOSED = "CLOSED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True)
class OrderChange:
    type: ChangeType
    new: dict | None = None
    old: dict | None = None

    @property
    def record_id(self) -> str | None:
        row = self.new or self.old or {}
        return row.get("id")


class Subscription:
    """Handle returned by :meth:`OrderChangeFeed.subscribe`."""

    def __init__(self, feed, business_id, statuses, on_change, on_status, order_id=None):
        self._feed = feed
        self.order_id = str(order_id) if order_id is not None else None
        self.business_id = str(business_id) if business_id is not None else None
        self.statuses = set(statuses) if statuses else None
        self.on_change = on_change
        self.on_status = on_status
        self.active = True

    def matches_row(self, row: dict | None) -> bool:
        if not row:
            return False
        if self.order_id is not None and str(row.get("id")) != self.order_id:
            return False
        if self.business_id is not None and str(row.get("business_id")) != self.business_id:
            return False
        if self.statuses is not None and row.get("status") not in self.statuses:
            return False
        return True

    def matches(self, change: OrderChange) -> bool:
        return self.matches_row(change.new) or self.matches_row(change.old)

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self._feed._remove(self)
        if self.on_status is not None:
            self.on_status(SubscriptionStatus.CLOSED)


class OrderChangeFeed:
    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        business_id,
        statuses: Iterable[str] | None,
        on_change: Callable[[OrderChange], None],
        on_status: Callable[[SubscriptionStatus], None] | None = None,
        order_id=None,
    ) -> Subscription:
        subscription = Subscription(self, business_id, statuses, on_change, on_status, order_id=order_id)
        self._subscriptions.append(subscription)
        if on_status is not None:
            on_status(SubscriptionStatus.SUBSCRIBED)
        return subscription

    def _remove(self, subscription: Subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, change: OrderChange):
        for subscription in list(self._subscriptions):
            if not subscription.active or not subscription.matches(change):
                continue
            try:
                subscription.on_change(change)
            except Exception as exc:
                # One failing subscriber must not starve the others
                logger.error(
                    "order_change_delivery_failed",
                    record_id=change.record_id,
                    change_type=change.type.value,
                    error=str(exc),
                )
                if subscription.on_status is not None:
                    subscription.on_status(SubscriptionStatus.CHANNEL_ERROR)

    def close(self):
        """Close every open subscription."""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
