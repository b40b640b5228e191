"""Order store backed by the ``ordering`` domain's Protean repositories.

Every call opens its own domain context so the store can be used from
request handlers, background tasks and tests alike. Writes are published on
an in-process :class:`OrderChangeFeed` once they are persisted.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from ordering.order.changes import ChangeType, OrderChange, OrderChangeFeed
from ordering.order.history import StatusHistoryEntry
from ordering.order.order import Order, format_order_number, validate_transition
from ordering.order.store import OrderStore
from shared.errors import InvalidTransition, OrderNotFound, ProviderError, StaleOrderStatus

logger = structlog.get_logger(__name__)

_ORDER_FIELDS = (
    "order_number",
    "status",
    "subtotal",
    "tax",
    "tip",
    "total",
    "pickup_time",
    "estimated_prep_time",
    "customer_name",
    "customer_email",
    "customer_phone",
    "customer_telegram_chat_id",
    "notification_method",
    "customer_notes",
    "staff_notes",
    "cancellation_reason",
    "notification_sent",
    "reminder_sent",
    "created_at",
    "confirmed_at",
    "started_preparing_at",
    "ready_at",
    "picked_up_at",
    "cancelled_at",
    "updated_at",
)

_ITEM_FIELDS = ("product_id", "name", "quantity", "unit_price", "notes")

_HISTORY_FIELDS = ("old_status", "new_status", "changed_by", "notes", "created_at")


def order_row(order: Order) -> dict:
    row = {"id": str(order.id), "business_id": str(order.business_id)}
    row.update({name: getattr(order, name) for name in _ORDER_FIELDS})
    row["items"] = [
        {"id": str(item.id), **{name: getattr(item, name) for name in _ITEM_FIELDS}} for item in order.items
    ]
    return row


def history_row(entry: StatusHistoryEntry) -> dict:
    row = {"id": str(entry.id), "order_id": str(entry.order_id)}
    row.update({name: getattr(entry, name) for name in _HISTORY_FIELDS})
    return row


def _error_text(exc: ValidationError) -> str:
    return "; ".join(f"{field}: {', '.join(map(str, errors))}" for field, errors in exc.messages.items())


class ProteanOrderStore(OrderStore):
    def __init__(self, domain=ordering, feed: OrderChangeFeed | None = None):
        self._domain = domain
        self.feed = feed or OrderChangeFeed()

    def _load(self, order_id) -> Order:
        try:
            return self._domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError as exc:
            raise OrderNotFound(str(order_id)) from exc

    async def get_by_id(self, order_id) -> dict | None:
        with self._domain.domain_context():
            try:
                return order_row(self._load(order_id))
            except OrderNotFound:
                return None

    async def insert_order(self, order_data: dict) -> dict:
        with self._domain.domain_context():
            try:
                order = Order.place(**order_data)
                self._domain.repository_for(Order).add(order)
            except ValidationError as exc:
                raise ProviderError("order-store", _error_text(exc)) from exc
            row = order_row(order)

        logger.info("order_inserted", order_id=row["id"], business_id=row["business_id"])
        self.feed.publish(OrderChange(type=ChangeType.INSERT, new=row))
        return row

    async def update(self, order_id, fields: dict, expected_status: str | None = None) -> dict:
        with self._domain.domain_context():
            order = self._load(order_id)

            if expected_status is not None and order.status != expected_status:
                raise StaleOrderStatus(str(order_id), expected_status, order.status)

            target = fields.get("status")
            if target is not None and target != order.status and not validate_transition(order.status, target):
                raise InvalidTransition(order.status, target)

            old_row = order_row(order)
            try:
                order.apply_changes(fields)
                self._domain.repository_for(Order).add(order)
            except ValidationError as exc:
                raise ProviderError("order-store", _error_text(exc)) from exc
            new_row = order_row(order)

        self.feed.publish(OrderChange(type=ChangeType.UPDATE, new=new_row, old=old_row))
        return new_row

    async def delete_order(self, order_id) -> None:
        with self._domain.domain_context():
            order = self._load(order_id)
            old_row = order_row(order)
            self._domain.repository_for(Order)._dao.delete(order)

        logger.info("order_deleted", order_id=old_row["id"])
        self.feed.publish(OrderChange(type=ChangeType.DELETE, old=old_row))

    async def insert_history(self, entry: dict) -> dict:
        with self._domain.domain_context():
            try:
                record = StatusHistoryEntry.record(**entry)
                self._domain.repository_for(StatusHistoryEntry).add(record)
            except ValidationError as exc:
                raise ProviderError("order-store", _error_text(exc)) from exc
            return history_row(record)

    async def history_for_order(self, order_id) -> list[dict]:
        with self._domain.domain_context():
            entries = self._domain.repository_for(StatusHistoryEntry).for_order(order_id)
            return [history_row(entry) for entry in entries]

    async def query_by_business_and_status(self, business_id, statuses=None) -> list[dict]:
        with self._domain.domain_context():
            orders = self._domain.repository_for(Order).for_business(business_id, statuses)
            return [order_row(order) for order in orders]

    async def next_order_number(self, business_id, business_slug: str) -> str:
        with self._domain.domain_context():
            count = self._domain.repository_for(Order).count_for_business(business_id)
        return format_order_number(business_slug, count + 1)

    def subscribe(self, business_id, statuses, on_change, on_status=None, order_id=None):
        return self.feed.subscribe(business_id, statuses, on_change, on_status, order_id=order_id)
