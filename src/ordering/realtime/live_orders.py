"""Live, in-memory views of orders kept in step with the order store.

A view seeds itself with one bulk fetch and then applies the store's change
events as they arrive. Views never write to the store.

Connection lifecycle:
    DISCONNECTED → CONNECTING → CONNECTED
    CONNECTING / CONNECTED → ERROR
    any → DISCONNECTED on close() or when the feed closes the subscription
"""

from collections.abc import Callable
from enum import Enum

import structlog

from ordering.order.changes import ChangeType, OrderChange, SubscriptionStatus
from ordering.order.store import OrderStore

logger = structlog.get_logger(__name__)


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


_STATE_FOR_SUBSCRIPTION = {
    SubscriptionStatus.SUBSCRIBED: ConnectionState.CONNECTED,
    SubscriptionStatus.CLOSED: ConnectionState.DISCONNECTED,
    SubscriptionStatus.TIMED_OUT: ConnectionState.DISCONNECTED,
    SubscriptionStatus.CHANNEL_ERROR: ConnectionState.ERROR,
}


class _LiveView:
    """Connection state handling shared by the list and single-order views."""

    def __init__(self, store: OrderStore, on_state_change: Callable[[ConnectionState], None] | None = None):
        self.store = store
        self.on_state_change = on_state_change
        self.state = ConnectionState.DISCONNECTED
        self.error: str | None = None
        self._subscription = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _set_state(self, state: ConnectionState):
        if state == self.state:
            return
        self.state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _fail(self, exc: Exception, event: str, **context):
        self.error = str(exc) or exc.__class__.__name__
        logger.error(event, error=self.error, **context)
        self._set_state(ConnectionState.ERROR)

    def _on_status(self, status: SubscriptionStatus):
        if self._closed:
            return
        state = _STATE_FOR_SUBSCRIPTION[status]
        if state == ConnectionState.ERROR:
            self.error = f"subscription reported {status.value}"
        self._set_state(state)

    def _on_change(self, change: OrderChange):
        if self._closed:
            return
        self._apply(change)

    def _apply(self, change: OrderChange):
        raise NotImplementedError

    def close(self):
        """Tear down the subscription. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        self._set_state(ConnectionState.DISCONNECTED)


class LiveOrderView(_LiveView):
    """Orders of one business, optionally narrowed to a set of statuses."""

    def __init__(
        self,
        store: OrderStore,
        business_id,
        statuses=None,
        on_state_change: Callable[[ConnectionState], None] | None = None,
    ):
        super().__init__(store, on_state_change)
        self.business_id = str(business_id)
        self.statuses = set(statuses) if statuses else None
        self._rows: dict[str, dict] = {}

    @property
    def orders(self) -> list[dict]:
        return list(self._rows.values())

    def get(self, order_id) -> dict | None:
        return self._rows.get(str(order_id))

    def _matches(self, row: dict) -> bool:
        return self.statuses is None or row.get("status") in self.statuses

    async def activate(self):
        """Seed the view and subscribe to changes for the same business and statuses."""
        if self._closed or self._subscription is not None:
            return

        self._set_state(ConnectionState.CONNECTING)
        try:
            rows = await self.store.query_by_business_and_status(self.business_id, self.statuses)
        except Exception as exc:
            self._fail(exc, "live_orders_initial_fetch_failed", business_id=self.business_id)
            return

        if self._closed:
            return
        self._replace(rows)

        try:
            self._subscription = self.store.subscribe(
                self.business_id, self.statuses, self._on_change, self._on_status
            )
        except Exception as exc:
            self._fail(exc, "live_orders_subscribe_failed", business_id=self.business_id)

    async def refetch(self):
        """Replace the whole set with a fresh fetch."""
        try:
            rows = await self.store.query_by_business_and_status(self.business_id, self.statuses)
        except Exception as exc:
            self._fail(exc, "live_orders_refetch_failed", business_id=self.business_id)
            return
        if not self._closed:
            self._replace(rows)

    def _replace(self, rows):
        self._rows = {str(row["id"]): dict(row) for row in rows}
        self.error = None

    def _apply(self, change: OrderChange):
        order_id = change.record_id
        if order_id is None:
            return
        order_id = str(order_id)

        if change.type == ChangeType.DELETE:
            self._rows.pop(order_id, None)
            return

        row = change.new or {}
        if change.type == ChangeType.UPDATE and not self._matches(row):
            # Left the status filter
            self._rows.pop(order_id, None)
            return

        if order_id in self._rows:
            self._rows[order_id].update(row)
        else:
            self._rows[order_id] = dict(row)


class OrderWatch(_LiveView):
    """A single order, e.g. for a customer tracking page."""

    def __init__(
        self,
        store: OrderStore,
        order_id,
        on_state_change: Callable[[ConnectionState], None] | None = None,
    ):
        super().__init__(store, on_state_change)
        self.order_id = str(order_id)
        self.order: dict | None = None

    async def activate(self):
        if self._closed or self._subscription is not None:
            return

        self._set_state(ConnectionState.CONNECTING)
        try:
            row = await self.store.get_by_id(self.order_id)
        except Exception as exc:
            self._fail(exc, "order_watch_fetch_failed", order_id=self.order_id)
            return

        if self._closed:
            return
        self.order = row

        try:
            self._subscription = self.store.subscribe(
                None, None, self._on_change, self._on_status, order_id=self.order_id
            )
        except Exception as exc:
            self._fail(exc, "order_watch_subscribe_failed", order_id=self.order_id)

    async def refetch(self):
        try:
            row = await self.store.get_by_id(self.order_id)
        except Exception as exc:
            self._fail(exc, "order_watch_refetch_failed", order_id=self.order_id)
            return
        if not self._closed:
            self.order = row

    def _apply(self, change: OrderChange):
        if change.record_id is None or str(change.record_id) != self.order_id:
            return
        if change.type == ChangeType.DELETE:
            self.order = None
        else:
            self.order = dict(change.new)
