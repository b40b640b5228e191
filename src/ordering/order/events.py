"""Domain events for the Order aggregate.

Events are persisted to the event store alongside each write and form the
durable record of what happened to an order. The live change feed that
dashboards subscribe to is published separately by the order store.
"""

from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A new pickup order was placed and entered the pending state."""

    __version__ = 1

    order_id = Identifier(required=True)
    business_id = Identifier(required=True)
    order_number = String(required=True)
    total = Float(required=True)
    pickup_time = DateTime()
    notification_method = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along one edge of the status graph."""

    __version__ = 1

    order_id = Identifier(required=True)
    business_id = Identifier(required=True)
    order_number = String(required=True)
    old_status = String(required=True)
    new_status = String(required=True)
    cancellation_reason = String()
    changed_at = DateTime(required=True)
