"""Integration tests for the HTTP endpoints."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.utils.globals import current_domain

from orderdesk.api import install
from orderdesk.errors import PersistenceFailure
from orderdesk.order.order import Order
from orderdesk.order.store import order_store
from orderdesk.views.session import NOT_FOUND_MESSAGE


@pytest.fixture()
def client():
    app = FastAPI()
    install(app)
    return TestClient(app)


@pytest.fixture()
def checkout_body():
    return {
        "customer_name": "Asha Rao",
        "customer_email": "asha@example.com",
        "customer_phone": "+91 9000000000",
        "delivery_address": "12 MG Road, Bengaluru",
        "payment_method": "upi",
        "lines": [{"item_id": 1, "quantity": 2}, {"item_id": 6, "quantity": 1}],
    }


@pytest.fixture()
def operator(client):
    response = client.post("/admin/session", json={"username": "admin", "password": "admin123"})
    return {"X-Operator-Token": response.json()["token"]}


class TestMenuEndpoints:
    def test_list_menu(self, client):
        response = client.get("/menu")
        assert response.status_code == 200
        assert len(response.json()) == 6

    def test_get_menu_item(self, client):
        response = client.get("/menu/5")
        assert response.status_code == 200
        assert response.json()["name"] == "Prawn Biryani"

    def test_unknown_menu_item(self, client):
        assert client.get("/menu/42").status_code == 404


class TestCheckoutEndpoint:
    def test_place_order(self, client, checkout_body):
        response = client.post("/orders", json=checkout_body)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["total_amount"] == 349 * 2 + 199
        assert data["payment_method"] == "upi"
        assert len(data["items"]) == 2

        order = current_domain.repository_for(Order).get(data["id"])
        assert order.order_number == data["order_number"]

    def test_prices_come_from_catalogue(self, client, checkout_body):
        checkout_body["lines"] = [{"item_id": 3, "quantity": 1}]
        checkout_body["total_amount"] = 1

        response = client.post("/orders", json=checkout_body)

        assert response.json()["total_amount"] == 399

    def test_unknown_menu_item_rejected(self, client, checkout_body):
        checkout_body["lines"] = [{"item_id": 99, "quantity": 1}]

        response = client.post("/orders", json=checkout_body)

        assert response.status_code == 422
        assert "lines" in response.json()["detail"]
        assert order_store.list_all() == []

    def test_empty_order_rejected(self, client, checkout_body):
        checkout_body["lines"] = []
        assert client.post("/orders", json=checkout_body).status_code == 422

    def test_unknown_payment_method_rejected(self, client, checkout_body):
        checkout_body["payment_method"] = "barter"
        assert client.post("/orders", json=checkout_body).status_code == 422
        assert order_store.list_all() == []

    def test_retry_with_order_id(self, client, checkout_body):
        checkout_body["order_id"] = "web-checkout-7"

        first = client.post("/orders", json=checkout_body)
        second = client.post("/orders", json=checkout_body)

        assert first.json()["id"] == second.json()["id"] == "web-checkout-7"
        assert len(order_store.list_all()) == 1

    def test_store_outage_is_retryable(self, client, checkout_body):
        failure = PersistenceFailure("Order store failed during create; please retry", operation="create")
        with patch.object(order_store, "create", side_effect=failure):
            response = client.post("/orders", json=checkout_body)

        assert response.status_code == 503
        assert response.json()["retryable"] is True


class TestOrderLookup:
    def test_get_order(self, client, checkout_body):
        created = client.post("/orders", json=checkout_body).json()

        response = client.get(f"/orders/{created['id']}")

        assert response.status_code == 200
        assert response.json()["order_number"] == created["order_number"]

    def test_lookup_by_number(self, client, checkout_body):
        created = client.post("/orders", json=checkout_body).json()

        response = client.get(f"/orders/lookup/{created['order_number']}")

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    def test_unknown_order(self, client):
        response = client.get("/orders/lookup/ORD-00000000")
        assert response.status_code == 404
        assert response.json()["detail"] == NOT_FOUND_MESSAGE

        assert client.get("/orders/no-such-id").status_code == 404


class TestOperatorSession:
    def test_wrong_credential(self, client):
        response = client.post("/admin/session", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401

    def test_admin_routes_require_token(self, client):
        assert client.get("/admin/orders").status_code == 401
        assert client.get("/admin/orders", headers={"X-Operator-Token": "forged"}).status_code == 401

    def test_sign_out(self, client, operator):
        assert client.delete("/admin/session", headers=operator).status_code == 200
        assert client.get("/admin/orders", headers=operator).status_code == 401


class TestAdminOrders:
    def test_list_orders(self, client, operator, checkout_body):
        client.post("/orders", json=checkout_body)
        client.post("/orders", json=checkout_body)

        response = client.get("/admin/orders", headers=operator)

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_update_status(self, client, operator, checkout_body):
        created = client.post("/orders", json=checkout_body).json()

        response = client.put(
            f"/admin/orders/{created['id']}/status",
            json={"status": "confirmed"},
            headers=operator,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert client.get(f"/orders/{created['id']}").json()["status"] == "confirmed"

    def test_unknown_status(self, client, operator, checkout_body):
        created = client.post("/orders", json=checkout_body).json()

        response = client.put(
            f"/admin/orders/{created['id']}/status",
            json={"status": "teleported"},
            headers=operator,
        )

        assert response.status_code == 422
        assert "status" in response.json()["detail"]

    def test_update_unknown_order(self, client, operator):
        response = client.put("/admin/orders/missing/status", json={"status": "ready"}, headers=operator)
        assert response.status_code == 404

    def test_statuses(self, client, operator):
        response = client.get("/admin/statuses", headers=operator)

        assert response.status_code == 200
        data = response.json()
        assert data["strict"] is False
        assert [s["value"] for s in data["statuses"]][-1] == "cancelled"
        assert len(data["statuses"]) == 7

    def test_statuses_list_next_moves_under_strict_policy(self, client, operator, monkeypatch):
        monkeypatch.setitem(current_domain.config["custom"], "strict_transitions", True)

        data = client.get("/admin/statuses", headers=operator).json()
        next_moves = {s["value"]: s["next_statuses"] for s in data["statuses"]}

        assert data["strict"] is True
        assert next_moves["out_for_delivery"] == ["delivered", "cancelled"]
        assert next_moves["delivered"] == []
        assert "pending" not in next_moves["confirmed"]
