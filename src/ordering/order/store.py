"""Abstract order store interface.

The status engine and the live order views only talk to the store through
this port. Rows are plain dicts keyed by field name.
"""

from abc import ABC, abstractmethod


class OrderStore(ABC):
    @abstractmethod
    async def get_by_id(self, order_id) -> dict | None:
        """Return the order row, or None when it does not exist."""

    @abstractmethod
    async def insert_order(self, order_data: dict) -> dict:
        """Persist a new order built from ``order_data`` and return its row."""

    @abstractmethod
    async def update(self, order_id, fields: dict, expected_status: str | None = None) -> dict:
        """Apply ``fields`` to an order and return the updated row.

        When ``expected_status`` is given the update is only applied if the
        order is still in that status; otherwise ``StaleOrderStatus`` is
        raised.
        """

    @abstractmethod
    async def delete_order(self, order_id) -> None:
        """Remove an order."""

    @abstractmethod
    async def insert_history(self, entry: dict) -> dict:
        """Append a status history entry and return its row."""

    @abstractmethod
    async def history_for_order(self, order_id) -> list[dict]:
        """Status history of one order, oldest first."""

    @abstractmethod
    async def query_by_business_and_status(self, business_id, statuses=None) -> list[dict]:
        """Orders of one business, newest first."""

    @abstractmethod
    async def next_order_number(self, business_id, business_slug: str) -> str:
        """Next human readable order number for the business."""

    @abstractmethod
    def subscribe(self, business_id, statuses, on_change, on_status=None, order_id=None):
        """Register for change events; returns a handle with ``unsubscribe()``."""
