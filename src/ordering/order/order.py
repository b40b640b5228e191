"""Order aggregate: a pickup order moving from placement to pickup.

State Machine (6 states):
    (new) → PENDING → CONFIRMED → PREPARING → READY → PICKED_UP
    CANCELLED (from any non-terminal state)

The transition graph is exposed as pure functions so callers can validate a
change before touching the store. The aggregate re-checks every status change
it is asked to apply.
"""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    CANCELLED = "cancelled"


class NotificationMethod(Enum):
    EMAIL = "email"
    SMS = "sms"
    TELEGRAM = "telegram"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Lifecycle timestamp stamped the first time a status is entered
_TIMESTAMP_FIELDS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PREPARING: "started_preparing_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.PICKED_UP: "picked_up_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

_NORMAL_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
]

DEFAULT_PREP_TIME_MINUTES = 30

_IMMUTABLE_FIELDS = {"id", "business_id", "order_number", "created_at"}


def _as_status(value) -> OrderStatus | None:
    if value is None or isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def validate_transition(from_status, to_status) -> bool:
    """Return True when ``from_status → to_status`` is an edge of the graph.

    ``from_status=None`` models creation and only admits ``pending``. Unknown
    status values are rejected rather than raising.
    """
    target = _as_status(to_status)
    if target is None:
        return False
    if from_status is None:
        return target == OrderStatus.PENDING
    current = _as_status(from_status)
    if current is None:
        return False
    return target in _VALID_TRANSITIONS[current]


def allowed_transitions(from_status) -> set[str]:
    current = _as_status(from_status)
    if current is None:
        return set()
    return {status.value for status in _VALID_TRANSITIONS[current]}


def is_terminal_status(status) -> bool:
    current = _as_status(status)
    return current is not None and not _VALID_TRANSITIONS[current]


def next_normal_status(status) -> str | None:
    """The next step along the happy path, or None once the order is done."""
    current = _as_status(status)
    if current not in _NORMAL_FLOW:
        return None
    position = _NORMAL_FLOW.index(current)
    if position + 1 >= len(_NORMAL_FLOW):
        return None
    return _NORMAL_FLOW[position + 1].value


def timestamp_field_for(status) -> str | None:
    current = _as_status(status)
    return _TIMESTAMP_FIELDS.get(current)


def format_order_number(business_slug: str, sequence: int) -> str:
    """Human readable order number, e.g. ``TAC-000042`` for slug ``tacos-el-gordo``."""
    letters = "".join(ch for ch in business_slug if ch.isalpha())[:3].upper() or "ORD"
    return f"{letters}-{sequence:06d}"


def _to_cents(amount) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def compute_totals(items_data, tax_rate=0.0, tip=0.0) -> dict:
    """Price an order from its line items.

    ``tax`` is rounded to cents; the other amounts are left as computed.
    """
    subtotal = sum(item["quantity"] * item["unit_price"] for item in items_data)
    tax = _to_cents(subtotal * tax_rate)
    return {
        "subtotal": _to_cents(subtotal),
        "tax": tax,
        "tip": _to_cents(tip),
        "total": _to_cents(subtotal + tax + tip),
    }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    """A product line on a pickup order, priced when the order is placed."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    notes = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    business_id = Identifier(required=True)
    order_number = String(required=True, max_length=20)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(LineItem)

    # Pricing, fixed at placement
    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    tip = Float(default=0.0)
    total = Float(default=0.0)

    # Scheduling
    pickup_time = DateTime()
    estimated_prep_time = Integer(default=DEFAULT_PREP_TIME_MINUTES, min_value=0)

    # Customer contact
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    customer_phone = String(max_length=50)
    customer_telegram_chat_id = String(max_length=100)
    notification_method = String(
        choices=NotificationMethod,
        default=NotificationMethod.EMAIL.value,
    )

    customer_notes = Text()
    staff_notes = Text()
    cancellation_reason = String(max_length=500)

    notification_sent = Boolean(default=False)
    reminder_sent = Boolean(default=False)

    # Lifecycle timestamps
    created_at = DateTime()
    confirmed_at = DateTime()
    started_preparing_at = DateTime()
    ready_at = DateTime()
    picked_up_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        business_id,
        order_number,
        items_data,
        tax_rate=0.0,
        tip=0.0,
        pickup_time=None,
        estimated_prep_time=DEFAULT_PREP_TIME_MINUTES,
        customer_name=None,
        customer_email=None,
        customer_phone=None,
        customer_telegram_chat_id=None,
        notification_method=NotificationMethod.EMAIL.value,
        customer_notes=None,
    ):
        """Place a new order in PENDING status.

        Args:
            items_data: List of dicts with product_id, name, quantity,
                        unit_price and optional notes.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        totals = compute_totals(items_data, tax_rate=tax_rate, tip=tip)

        order = cls(
            business_id=business_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            items=[LineItem(**item) for item in items_data],
            pickup_time=pickup_time,
            estimated_prep_time=estimated_prep_time,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            customer_telegram_chat_id=customer_telegram_chat_id,
            notification_method=notification_method,
            customer_notes=customer_notes,
            created_at=now,
            updated_at=now,
            **totals,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                business_id=str(business_id),
                order_number=order_number,
                total=order.total,
                pickup_time=pickup_time,
                notification_method=notification_method,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Changes
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        if not validate_transition(self.status, target_status):
            raise ValidationError({"status": [f"Cannot transition from {self.status} to {target_status}"]})

    def apply_changes(self, changes: dict):
        """Apply a field update built by the status engine.

        A status change is checked against the graph, lifecycle timestamps
        that are already set are left untouched, and ``updated_at`` is always
        stamped.
        """
        changes = dict(changes)
        old_status = self.status
        new_status = changes.pop("status", None)

        if new_status is not None and new_status != old_status:
            self._assert_can_transition(new_status)
            self.status = new_status

        for field_name, value in changes.items():
            if field_name in _IMMUTABLE_FIELDS:
                continue
            if field_name in _TIMESTAMP_FIELDS.values() and getattr(self, field_name) is not None:
                continue
            setattr(self, field_name, value)

        self.updated_at = changes.get("updated_at") or datetime.now(UTC)

        if new_status is not None and new_status != old_status:
            self.raise_(
                OrderStatusChanged(
                    order_id=str(self.id),
                    business_id=str(self.business_id),
                    order_number=self.order_number,
                    old_status=old_status,
                    new_status=new_status,
                    cancellation_reason=self.cancellation_reason,
                    changed_at=self.updated_at,
                )
            )
