"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def for_business(self, business_id, statuses=None) -> list[Order]:
        """Orders of one business, newest first, optionally narrowed by status."""
        query = self._dao.query.filter(business_id=str(business_id))
        if statuses:
            query = query.filter(status__in=list(statuses))
        return query.order_by("-created_at").all().items

    def count_for_business(self, business_id) -> int:
        return self._dao.query.filter(business_id=str(business_id)).all().total
