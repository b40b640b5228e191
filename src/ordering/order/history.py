"""Status history: an append-only audit trail of every order status change."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.aggregate
class StatusHistoryEntry:
    """One edge taken by an order. ``old_status`` is empty only for creation."""

    order_id = Identifier(required=True)
    old_status = String(max_length=20)
    new_status = String(required=True, max_length=20)
    changed_by = String(max_length=255)
    notes = Text()
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, old_status, new_status, changed_by=None, notes=None):
        return cls(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_by=changed_by,
            notes=notes,
            created_at=datetime.now(UTC),
        )


@ordering.repository(part_of=StatusHistoryEntry)
class StatusHistoryRepository:
    def for_order(self, order_id) -> list[StatusHistoryEntry]:
        """Entries for one order, oldest first."""
        return self._dao.query.filter(order_id=str(order_id)).order_by("created_at").all().items
