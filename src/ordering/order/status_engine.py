"""Status transition engine: the only writer of order status.

Validates a requested change against the status graph, applies it to the
store with the matching lifecycle timestamp, appends the audit entry and,
when an order becomes ready, hands it to the injected notifier.

Every operation returns a :class:`StatusChangeResult` (or a plain value);
errors are reported on the result instead of being raised. The exception is
:meth:`StatusTransitionEngine.log_status_change`, which is an explicit audit
write and lets store errors propagate.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from ordering.order.order import (
    OrderStatus,
    allowed_transitions,
    is_terminal_status,
    next_normal_status,
    timestamp_field_for,
    validate_transition,
)
from ordering.order.store import OrderStore
from shared.errors import InvalidTransition, LifecycleError, OrderNotFound, ProviderError

logger = structlog.get_logger(__name__)

# Called with the updated order row; returns True once the customer was notified
OrderReadyNotifier = Callable[[dict], Awaitable[bool]]


@dataclass
class StatusChangeResult:
    success: bool
    order: dict | None = None
    history_entry: dict | None = None
    error: LifecycleError | None = None
    history_error: str | None = None
    notification_sent: bool = False
    notification_error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error is not None else None


def build_status_update(to_status, cancellation_reason=None, now=None) -> dict:
    """Field changes for one transition: status, its timestamp, ``updated_at``."""
    now = now or datetime.now(UTC)
    fields = {"status": to_status, "updated_at": now}

    timestamp_field = timestamp_field_for(to_status)
    if timestamp_field:
        fields[timestamp_field] = now

    if to_status == OrderStatus.CANCELLED.value and cancellation_reason:
        fields["cancellation_reason"] = cancellation_reason

    return fields


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _as_error(exc: Exception) -> LifecycleError:
    if isinstance(exc, LifecycleError):
        return exc
    return ProviderError("order-store", str(exc) or exc.__class__.__name__)


class StatusTransitionEngine:
    def __init__(self, store: OrderStore, notifier: OrderReadyNotifier | None = None):
        self.store = store
        self.notifier = notifier

    def set_notifier(self, notifier: OrderReadyNotifier | None):
        self.notifier = notifier

    # -------------------------------------------------------------------
    # Graph queries
    # -------------------------------------------------------------------
    @staticmethod
    def validate_transition(from_status, to_status) -> bool:
        return validate_transition(from_status, to_status)

    @staticmethod
    def get_allowed_transitions(from_status) -> set[str]:
        return allowed_transitions(from_status)

    @staticmethod
    def is_terminal_status(status) -> bool:
        return is_terminal_status(status)

    @staticmethod
    def next_normal_status(status) -> str | None:
        return next_normal_status(status)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    async def create_order(
        self,
        business_id,
        business_slug: str,
        items: list[dict],
        changed_by=None,
        notes=None,
        **order_fields,
    ) -> StatusChangeResult:
        """Place a new order and record its ``null → pending`` history entry."""
        if not validate_transition(None, OrderStatus.PENDING.value):
            return StatusChangeResult(success=False, error=InvalidTransition(None, OrderStatus.PENDING.value))

        try:
            order_number = await self.store.next_order_number(business_id, business_slug)
            order = await self.store.insert_order(
                {
                    "business_id": business_id,
                    "order_number": order_number,
                    "items_data": items,
                    **order_fields,
                }
            )
        except Exception as exc:
            logger.error("order_creation_failed", business_id=str(business_id), error=str(exc))
            return StatusChangeResult(success=False, error=_as_error(exc))

        result = StatusChangeResult(success=True, order=order)
        await self._append_history(result, order["id"], None, OrderStatus.PENDING.value, changed_by, notes)

        logger.info("order_created", order_id=order["id"], order_number=order["order_number"])
        return result

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    async def update_status(
        self,
        order_id,
        target_status: str,
        notes: str | None = None,
        changed_by: str | None = None,
        skip_notification: bool = False,
        cancellation_reason: str | None = None,
    ) -> StatusChangeResult:
        try:
            order = await self.store.get_by_id(order_id)
        except Exception as exc:
            return StatusChangeResult(success=False, error=_as_error(exc))

        if order is None:
            return StatusChangeResult(success=False, error=OrderNotFound(str(order_id)))

        current_status = order["status"]
        if not validate_transition(current_status, target_status):
            logger.info(
                "status_transition_rejected",
                order_id=str(order_id),
                from_status=current_status,
                to_status=target_status,
            )
            return StatusChangeResult(success=False, order=order, error=InvalidTransition(current_status, target_status))

        fields = build_status_update(target_status, cancellation_reason)
        try:
            updated = await self.store.update(order_id, fields, expected_status=current_status)
        except Exception as exc:
            logger.warning("status_update_failed", order_id=str(order_id), to_status=target_status, error=str(exc))
            return StatusChangeResult(success=False, order=order, error=_as_error(exc))

        logger.info(
            "order_status_changed",
            order_id=str(order_id),
            from_status=current_status,
            to_status=target_status,
            changed_by=changed_by,
        )

        result = StatusChangeResult(success=True, order=updated)
        await self._append_history(result, str(order_id), current_status, target_status, changed_by, notes)

        if target_status == OrderStatus.READY.value and not skip_notification:
            await self._notify_ready(result)

        return result

    async def bulk_update_status(self, order_ids, target_status: str, **options) -> list[StatusChangeResult]:
        """Apply the same change to each order independently, results in input order."""
        results = []
        for order_id in order_ids:
            results.append(await self.update_status(order_id, target_status, **options))
        return results

    async def _append_history(self, result, order_id, old_status, new_status, changed_by, notes):
        try:
            result.history_entry = await self.log_status_change(order_id, old_status, new_status, changed_by, notes)
        except Exception as exc:
            # The status write stands; the missing audit row is reported and logged
            logger.error(
                "status_history_write_failed",
                order_id=str(order_id),
                from_status=old_status,
                to_status=new_status,
                error=str(exc),
            )
            result.history_error = str(exc) or exc.__class__.__name__
            result.warnings.append("status history entry was not recorded")

    async def _notify_ready(self, result: StatusChangeResult):
        if self.notifier is None:
            return

        order = result.order
        try:
            delivered = await self.notifier(order)
        except Exception as exc:
            logger.error("order_ready_notification_failed", order_id=order["id"], error=str(exc))
            result.notification_error = str(exc) or exc.__class__.__name__
            return

        if not delivered:
            result.notification_error = "order ready notification was not delivered"
            logger.warning("order_ready_notification_not_delivered", order_id=order["id"])
            return

        result.notification_sent = True
        try:
            result.order = await self.store.update(order["id"], {"notification_sent": True})
        except Exception as exc:
            logger.error("notification_flag_update_failed", order_id=order["id"], error=str(exc))
            result.warnings.append("notification_sent flag was not stored")

    # -------------------------------------------------------------------
    # Audit
    # -------------------------------------------------------------------
    async def log_status_change(self, order_id, old_status, new_status, changed_by=None, notes=None) -> dict:
        """Append one history entry. Store errors propagate to the caller."""
        return await self.store.insert_history(
            {
                "order_id": str(order_id),
                "old_status": old_status,
                "new_status": new_status,
                "changed_by": changed_by,
                "notes": notes,
            }
        )

    async def get_status_history(self, order_id) -> list[dict]:
        return await self.store.history_for_order(order_id)

    # -------------------------------------------------------------------
    # Board helpers
    # -------------------------------------------------------------------
    async def can_cancel_order(self, order_id) -> bool:
        try:
            order = await self.store.get_by_id(order_id)
        except Exception as exc:
            logger.warning("can_cancel_lookup_failed", order_id=str(order_id), error=str(exc))
            return False
        if order is None:
            return False
        return validate_transition(order["status"], OrderStatus.CANCELLED.value)

    async def get_order_stats(self, business_id) -> dict[str, int]:
        """Number of orders per status; every status is present."""
        stats = {status.value: 0 for status in OrderStatus}
        try:
            orders = await self.store.query_by_business_and_status(business_id)
        except Exception as exc:
            logger.error("order_stats_query_failed", business_id=str(business_id), error=str(exc))
            return stats

        for order in orders:
            if order["status"] in stats:
                stats[order["status"]] += 1
        return stats

    async def get_overdue_orders(self, business_id, now: datetime | None = None) -> list[dict]:
        """Ready orders whose pickup time has already passed."""
        now = _aware(now or datetime.now(UTC))
        try:
            ready = await self.store.query_by_business_and_status(business_id, [OrderStatus.READY.value])
        except Exception as exc:
            logger.error("overdue_orders_query_failed", business_id=str(business_id), error=str(exc))
            return []

        return [order for order in ready if order.get("pickup_time") is not None and _aware(order["pickup_time"]) < now]
