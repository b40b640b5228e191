"""Shared BDD fixtures and step definitions for the Ordering domain."""

import asyncio
from uuid import uuid4

import pytest
from ordering.order.protean_store import ProteanOrderStore
from ordering.order.status_engine import StatusTransitionEngine
from pytest_bdd import given, parsers

_PATH_TO = {
    "pending": [],
    "confirmed": ["confirmed"],
    "preparing": ["confirmed", "preparing"],
    "ready": ["confirmed", "preparing", "ready"],
    "picked_up": ["confirmed", "preparing", "ready", "picked_up"],
    "cancelled": ["cancelled"],
}


class RecordingNotifier:
    def __init__(self):
        self.orders = []

    async def __call__(self, order):
        self.orders.append(order)
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def business_id():
    return f"biz-{uuid4().hex[:8]}"


@pytest.fixture()
def store():
    return ProteanOrderStore()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def engine(store, notifier):
    return StatusTransitionEngine(store, notifier=notifier)


@pytest.fixture()
def placed():
    """Orders placed during a scenario, by the name the scenario gives them."""
    return {}


@pytest.fixture()
def place_order(engine, business_id):
    def _place():
        result = asyncio.run(
            engine.create_order(
                business_id,
                "tacos-el-gordo",
                [{"product_id": "prod-001", "name": "Taco al pastor", "quantity": 2, "unit_price": 25.0}],
                customer_email="ana@example.com",
            )
        )
        assert result.success, result.error_message
        return result.order

    return _place


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending order", target_fixture="order")
def _(place_order):
    return place_order()


@given(parsers.parse('an order that is "{status}"'), target_fixture="order")
def _(engine, place_order, status):
    order = place_order()
    for step in _PATH_TO[status]:
        result = asyncio.run(engine.update_status(order["id"], step, skip_notification=True))
        assert result.success, result.error_message
        order = result.order
    return order
