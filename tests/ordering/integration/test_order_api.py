"""Integration tests for the pickup order API via TestClient."""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.routes import business_router, order_router
from ordering.order.protean_store import ProteanOrderStore
from ordering.order.status_engine import StatusTransitionEngine


@pytest.fixture()
def client():
    app = FastAPI()
    app.state.status_engine = StatusTransitionEngine(ProteanOrderStore())
    app.include_router(order_router)
    app.include_router(business_router)
    return TestClient(app)


@pytest.fixture()
def business_id():
    return f"biz-{uuid4().hex[:8]}"


def _create_order(client, business_id, **overrides):
    payload = {
        "business_id": business_id,
        "business_slug": "tacos-el-gordo",
        "items": [{"product_id": "prod-001", "name": "Taco al pastor", "quantity": 3, "unit_price": 25.0}],
        "tax_rate": 0.16,
        "customer_name": "Ana",
        "customer_email": "ana@example.com",
    }
    payload.update(overrides)
    response = client.post("/orders", json=payload)
    assert response.status_code == 201
    return response.json()["order"]


def _move(client, order_id, status, **extra):
    return client.put(f"/orders/{order_id}/status", json={"status": status, **extra})


class TestCreateOrder:
    def test_create_returns_pending_order(self, client, business_id):
        order = _create_order(client, business_id)
        assert order["status"] == "pending"
        assert order["order_number"] == "TAC-000001"
        assert order["subtotal"] == 75.0
        assert order["tax"] == 12.0
        assert order["total"] == 87.0

    def test_create_requires_items(self, client, business_id):
        response = client.post("/orders", json={"business_id": business_id, "business_slug": "x", "items": []})
        assert response.status_code == 422

    def test_get_order(self, client, business_id):
        order = _create_order(client, business_id)
        response = client.get(f"/orders/{order['id']}")
        assert response.status_code == 200
        assert response.json()["items"][0]["name"] == "Taco al pastor"

    def test_get_unknown_order(self, client):
        response = client.get(f"/orders/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"


class TestUpdateStatus:
    def test_valid_transition(self, client, business_id):
        order = _create_order(client, business_id)

        response = _move(client, order["id"], "confirmed", changed_by="staff-1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["order"]["status"] == "confirmed"
        assert body["history_entry"]["new_status"] == "confirmed"

    def test_invalid_transition_is_conflict(self, client, business_id):
        order = _create_order(client, business_id)

        response = _move(client, order["id"], "preparing")

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "invalid_transition"
        assert detail["from_status"] == "pending"
        assert detail["to_status"] == "preparing"

    def test_unknown_status_value(self, client, business_id):
        order = _create_order(client, business_id)
        assert _move(client, order["id"], "shipped").status_code == 422

    def test_unknown_order(self, client):
        assert _move(client, str(uuid4()), "confirmed").status_code == 404

    def test_history(self, client, business_id):
        order = _create_order(client, business_id)
        _move(client, order["id"], "confirmed")

        response = client.get(f"/orders/{order['id']}/history")

        assert response.status_code == 200
        assert [entry["new_status"] for entry in response.json()] == ["pending", "confirmed"]

    def test_bulk_status(self, client, business_id):
        first = _create_order(client, business_id)
        second = _create_order(client, business_id)
        _move(client, second["id"], "cancelled")

        response = client.post(
            "/orders/bulk-status", json={"order_ids": [first["id"], second["id"]], "status": "confirmed"}
        )

        assert response.status_code == 200
        assert [result["success"] for result in response.json()["results"]] == [True, False]

    def test_can_cancel(self, client, business_id):
        order = _create_order(client, business_id)
        response = client.get(f"/orders/{order['id']}/can-cancel")
        assert response.json() == {"order_id": order["id"], "can_cancel": True}


class TestTransitionsEndpoint:
    def test_allowed_from_ready(self, client):
        response = client.get("/orders/transitions/ready")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "allowed": ["cancelled", "picked_up"],
            "is_terminal": False,
            "next_status": "picked_up",
        }

    def test_terminal_status(self, client):
        body = client.get("/orders/transitions/cancelled").json()
        assert body["allowed"] == []
        assert body["is_terminal"] is True
        assert body["next_status"] is None


class TestBusinessEndpoints:
    def test_list_orders_filtered_by_status(self, client, business_id):
        first = _create_order(client, business_id)
        _create_order(client, business_id)
        _move(client, first["id"], "confirmed")

        response = client.get(f"/businesses/{business_id}/orders", params={"status": "confirmed"})

        assert response.status_code == 200
        assert [order["id"] for order in response.json()["orders"]] == [first["id"]]

    def test_order_stats(self, client, business_id):
        _create_order(client, business_id)
        stats = client.get(f"/businesses/{business_id}/order-stats").json()
        assert stats["pending"] == 1
        assert stats["picked_up"] == 0

    def test_overdue_orders_empty(self, client, business_id):
        _create_order(client, business_id)
        response = client.get(f"/businesses/{business_id}/overdue-orders")
        assert response.json() == {"orders": []}
