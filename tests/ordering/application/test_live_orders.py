"""Application tests for live order views fed by the store's change feed."""

import asyncio
from uuid import uuid4

from ordering.order.protean_store import ProteanOrderStore
from ordering.realtime.live_orders import ConnectionState, LiveOrderView, OrderWatch

_ITEMS = [{"product_id": "prod-1", "name": "Torta", "quantity": 1, "unit_price": 60.0}]


def _run(coro):
    return asyncio.run(coro)


class _BrokenStore(ProteanOrderStore):
    async def query_by_business_and_status(self, business_id, statuses=None):
        raise ConnectionError("database unreachable")


class _LiveViewTestCase:
    def setup_method(self):
        self.business_id = f"biz-{uuid4().hex[:8]}"
        self.store = ProteanOrderStore()
        self.states = []

    def _insert(self, business_id=None):
        return _run(
            self.store.insert_order(
                {
                    "business_id": business_id or self.business_id,
                    "order_number": f"LIV-{uuid4().hex[:6]}",
                    "items_data": _ITEMS,
                }
            )
        )

    def _move(self, order_id, status):
        return _run(self.store.update(order_id, {"status": status}))

    def _view(self, statuses=None):
        view = LiveOrderView(self.store, self.business_id, statuses, on_state_change=self.states.append)
        _run(view.activate())
        return view


class TestLiveOrderView(_LiveViewTestCase):
    def test_seeds_and_applies_insert_and_delete(self):
        order_a = self._insert()
        order_b = self._insert()
        view = self._view()
        assert {row["id"] for row in view.orders} == {order_a["id"], order_b["id"]}

        order_c = self._insert()
        _run(self.store.delete_order(order_b["id"]))

        assert {row["id"] for row in view.orders} == {order_a["id"], order_c["id"]}

    def test_connects_after_subscribing(self):
        view = self._view()
        assert view.state == ConnectionState.CONNECTED
        assert self.states == [ConnectionState.CONNECTING, ConnectionState.CONNECTED]

    def test_update_is_merged_into_known_row(self):
        order = self._insert()
        view = self._view()

        self._move(order["id"], "confirmed")

        assert view.get(order["id"])["status"] == "confirmed"
        assert len(view.orders) == 1

    def test_row_leaving_status_filter_is_dropped(self):
        order = self._insert()
        view = self._view(statuses={"pending", "confirmed"})

        self._move(order["id"], "cancelled")

        assert view.get(order["id"]) is None

    def test_row_entering_status_filter_is_added(self):
        order = self._insert()
        self._move(order["id"], "confirmed")
        self._move(order["id"], "preparing")
        view = self._view(statuses={"ready"})
        assert view.orders == []

        self._move(order["id"], "ready")

        assert view.get(order["id"])["status"] == "ready"

    def test_other_businesses_are_ignored(self):
        view = self._view()
        self._insert(business_id=f"biz-{uuid4().hex[:8]}")
        assert view.orders == []

    def test_no_changes_after_close(self):
        view = self._view()
        view.close()
        view.close()

        self._insert()

        assert view.orders == []
        assert view.state == ConnectionState.DISCONNECTED
        assert self.states.count(ConnectionState.DISCONNECTED) == 1

    def test_refetch_replaces_rows(self):
        view = self._view()
        view._rows["stale"] = {"id": "stale", "status": "pending"}

        _run(view.refetch())

        assert view.get("stale") is None

    def test_fetch_failure_sets_error_state(self):
        self.store = _BrokenStore()
        view = self._view()

        assert view.state == ConnectionState.ERROR
        assert view.error == "database unreachable"
        assert view.orders == []


class TestOrderWatch(_LiveViewTestCase):
    def test_follows_a_single_order(self):
        order = self._insert()
        other = self._insert()
        watch = OrderWatch(self.store, order["id"])
        _run(watch.activate())

        self._move(order["id"], "confirmed")
        self._move(other["id"], "cancelled")

        assert watch.state == ConnectionState.CONNECTED
        assert watch.order["status"] == "confirmed"

    def test_deleted_order_clears_watch(self):
        order = self._insert()
        watch = OrderWatch(self.store, order["id"])
        _run(watch.activate())

        _run(self.store.delete_order(order["id"]))

        assert watch.order is None

    def test_unknown_order(self):
        watch = OrderWatch(self.store, str(uuid4()))
        _run(watch.activate())
        assert watch.order is None
        assert watch.state == ConnectionState.CONNECTED
